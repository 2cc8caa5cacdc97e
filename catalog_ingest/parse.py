"""Parse and normalize Google Books API responses into catalog records."""
from typing import Dict, Any, List, Optional
from catalog_ingest.models import CatalogRecord

DEFAULT_DESCRIPTION = "No description available."
DEFAULT_GENRE = "general"
DEFAULT_PUBLICATION_DATE = "1970-01-01"


def normalize_publication_date(published_date: Any) -> str:
    """
    Expand a variable-precision Google date into YYYY-MM-DD.

    "2023" -> "2023-01-01", "2023-04" -> "2023-04-01",
    "2023-04-15T00:00" -> "2023-04-15". Anything else gets the default.
    """
    if not isinstance(published_date, str) or not published_date:
        return DEFAULT_PUBLICATION_DATE

    if len(published_date) == 4:
        return f"{published_date}-01-01"
    if len(published_date) == 7:
        return f"{published_date}-01"
    if len(published_date) >= 10:
        return published_date[:10]
    return DEFAULT_PUBLICATION_DATE


def derive_genre(categories: Any) -> str:
    """First word of the first category, lowercased."""
    if not categories or not isinstance(categories, list):
        return DEFAULT_GENRE

    first = categories[0]
    if not isinstance(first, str):
        return DEFAULT_GENRE

    token = first.lower().split(" ")[0]
    return token or DEFAULT_GENRE


def _find_identifier(identifiers: List[Dict[str, Any]], scheme: str) -> Optional[str]:
    for entry in identifiers:
        if not isinstance(entry, dict) or entry.get("type") != scheme:
            continue
        value = entry.get("identifier")
        if isinstance(value, str) and value:
            return value
    return None


def select_isbn(identifiers: Any) -> Optional[str]:
    """
    Pick the natural key for a volume.

    Args:
        identifiers: volumeInfo.industryIdentifiers

    Returns:
        ISBN-13 when present, else ISBN-10, else None
    """
    if not identifiers or not isinstance(identifiers, list):
        return None
    return _find_identifier(identifiers, "ISBN_13") or _find_identifier(identifiers, "ISBN_10")


def parse_book(item: Dict[str, Any]) -> Optional[CatalogRecord]:
    """
    Parse a single book item from Google Books API.

    Args:
        item: Single item from Google Books API response

    Returns:
        CatalogRecord, or None when title, authors or ISBN is missing
    """
    volume_info = item.get("volumeInfo")
    if not isinstance(volume_info, dict):
        return None

    title = volume_info.get("title")
    authors = volume_info.get("authors")
    if not isinstance(authors, list):
        authors = []
    authors = [a for a in authors if isinstance(a, str) and a]
    isbn = select_isbn(volume_info.get("industryIdentifiers"))

    # We need at least an ISBN (for uniqueness), an author and a title
    if not isinstance(title, str) or not title or not authors or not isbn:
        return None

    description = volume_info.get("description")
    if not isinstance(description, str) or not description:
        description = DEFAULT_DESCRIPTION

    image_links = volume_info.get("imageLinks")
    thumbnail = image_links.get("thumbnail") if isinstance(image_links, dict) else None

    return CatalogRecord(
        title=title,
        author=", ".join(authors),
        isbn=isbn,
        description=description,
        genre=derive_genre(volume_info.get("categories")),
        publication_date=normalize_publication_date(volume_info.get("publishedDate")),
        cover_image=thumbnail if isinstance(thumbnail, str) and thumbnail else None
    )


def normalize_books(items: List[Dict[str, Any]]) -> List[CatalogRecord]:
    """
    Normalize a page of raw volumes, dropping incomplete ones.

    Input order is kept. Duplicate ISBNs are left for the store to resolve.
    """
    records = []

    for item in items:
        if not isinstance(item, dict):
            continue
        record = parse_book(item)
        if record:
            records.append(record)

    return records
