"""Tests for parsing functions."""
import pytest

from catalog_ingest.parse import (
    DEFAULT_DESCRIPTION,
    DEFAULT_GENRE,
    DEFAULT_PUBLICATION_DATE,
    derive_genre,
    normalize_books,
    normalize_publication_date,
    parse_book,
    select_isbn,
)


def make_item(**volume_info):
    """Build a Google Books item with sensible required fields."""
    info = {
        "title": "Python Crash Course",
        "authors": ["Eric Matthes"],
        "industryIdentifiers": [{"type": "ISBN_13", "identifier": "9781593279288"}],
    }
    info.update(volume_info)
    return {"id": "abc123", "volumeInfo": info}


def test_parse_book_complete():
    """Test parsing a book with all fields present."""
    item = make_item(
        authors=["Eric Matthes", "Jane Doe"],
        industryIdentifiers=[
            {"type": "ISBN_10", "identifier": "1593279280"},
            {"type": "ISBN_13", "identifier": "9781593279288"},
        ],
        publishedDate="2019-05-03",
        description="A great book",
        categories=["Computers / Programming"],
        imageLinks={"thumbnail": "http://example.com/thumb.jpg"},
    )

    book = parse_book(item)

    assert book is not None
    assert book.title == "Python Crash Course"
    assert book.author == "Eric Matthes, Jane Doe"
    assert book.isbn == "9781593279288"
    assert book.description == "A great book"
    assert book.genre == "computers"
    assert book.publication_date == "2019-05-03"
    assert book.cover_image == "http://example.com/thumb.jpg"


def test_parse_book_missing_optional_fields():
    """Test defaults for description, genre, date and cover."""
    book = parse_book(make_item())

    assert book is not None
    assert book.description == DEFAULT_DESCRIPTION
    assert book.genre == DEFAULT_GENRE
    assert book.publication_date == DEFAULT_PUBLICATION_DATE
    assert book.cover_image is None


@pytest.mark.parametrize("overrides", [
    {"title": None},
    {"title": ""},
    {"authors": None},
    {"authors": []},
    {"industryIdentifiers": None},
    {"industryIdentifiers": []},
    {"industryIdentifiers": [{"type": "OTHER", "identifier": "PKEY:123"}]},
    {"industryIdentifiers": [{"type": "ISBN_13"}]},
    {"industryIdentifiers": [{"type": "ISBN_13", "identifier": 9781593279288}]},
    {"industryIdentifiers": "9781593279288"},
    {"title": 123},
    {"title": ["Python Crash Course"]},
    {"authors": "Eric Matthes"},
])
def test_parse_book_incomplete_is_dropped(overrides):
    """Books without title, authors or ISBN are skipped, not errors."""
    assert parse_book(make_item(**overrides)) is None


@pytest.mark.parametrize("volume_info", [None, "Python Crash Course", ["title"], 42])
def test_parse_book_malformed_volume_info(volume_info):
    """Test that an item without a volumeInfo object returns None."""
    assert parse_book({"id": "x", "volumeInfo": volume_info}) is None
    assert parse_book({"id": "x"}) is None


@pytest.mark.parametrize("overrides", [
    {"imageLinks": "http://example.com/thumb.jpg"},
    {"imageLinks": ["http://example.com/thumb.jpg"]},
    {"imageLinks": {"thumbnail": 7}},
    {"description": 3.5},
    {"description": {"text": "A great book"}},
    {"categories": "Fiction"},
    {"publishedDate": ["2019"]},
])
def test_parse_book_malformed_optional_fields_use_defaults(overrides):
    """Odd optional fields fall back to defaults instead of raising."""
    book = parse_book(make_item(**overrides))

    assert book is not None
    assert book.description == DEFAULT_DESCRIPTION
    assert book.cover_image is None
    assert book.genre == DEFAULT_GENRE
    assert book.publication_date == DEFAULT_PUBLICATION_DATE


def test_normalize_books_skips_malformed_records():
    """A malformed record in a page is dropped; the rest of the page survives."""
    items = [
        make_item(title="Good", imageLinks="http://example.com/thumb.jpg"),
        make_item(title=123),
        {"id": "x", "volumeInfo": "broken"},
        "not an item",
        make_item(title="Also good", description=12),
    ]

    books = normalize_books(items)

    assert [b.title for b in books] == ["Good", "Also good"]
    assert books[0].cover_image is None
    assert books[1].description == DEFAULT_DESCRIPTION


def test_parse_book_isbn10_fallback():
    """ISBN-10 is used when there is no ISBN-13."""
    item = make_item(industryIdentifiers=[{"type": "ISBN_10", "identifier": "1593279280"}])
    assert parse_book(item).isbn == "1593279280"


def test_select_isbn_prefers_13():
    identifiers = [
        {"type": "ISBN_10", "identifier": "0306406152"},
        {"type": "ISBN_13", "identifier": "9780306406157"},
    ]
    assert select_isbn(identifiers) == "9780306406157"
    assert select_isbn(None) is None


@pytest.mark.parametrize("raw, expected", [
    ("2021", "2021-01-01"),
    ("2021-07", "2021-07-01"),
    ("2021-07-15", "2021-07-15"),
    ("2021-07-15T10:00:00Z", "2021-07-15"),
    ("20", DEFAULT_PUBLICATION_DATE),
    ("2021-7", DEFAULT_PUBLICATION_DATE),
    ("2021-07-1", DEFAULT_PUBLICATION_DATE),
    ("", DEFAULT_PUBLICATION_DATE),
    (None, DEFAULT_PUBLICATION_DATE),
    (2021, DEFAULT_PUBLICATION_DATE),
])
def test_normalize_publication_date(raw, expected):
    assert normalize_publication_date(raw) == expected


def test_normalize_publication_date_does_not_validate_content():
    """Only the length decides; a 4-character string always gets -01-01."""
    assert normalize_publication_date("19??") == "19??-01-01"


@pytest.mark.parametrize("categories, expected", [
    (["Young Adult Fiction"], "young"),
    (["FICTION", "History"], "fiction"),
    (["Juvenile Nonfiction / Animals"], "juvenile"),
    ([], DEFAULT_GENRE),
    (None, DEFAULT_GENRE),
    ([" Fiction"], DEFAULT_GENRE),
])
def test_derive_genre(categories, expected):
    assert derive_genre(categories) == expected


def test_normalize_books_preserves_order_and_duplicates():
    """Order is kept and duplicates are left for the store to resolve."""
    items = [
        make_item(title="Book 1"),
        make_item(title=None),
        make_item(title="Book 2"),
        make_item(title="Book 1 again"),
    ]

    books = normalize_books(items)

    assert [b.title for b in books] == ["Book 1", "Book 2", "Book 1 again"]
    assert books[0].isbn == books[2].isbn
