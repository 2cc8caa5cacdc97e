"""Data models for catalog ingestion."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Tuple


@dataclass
class CatalogRecord:
    """Normalized book row, ready for the books table."""
    title: str
    author: str
    isbn: str
    description: str
    genre: str
    publication_date: str
    cover_image: Optional[str]

    def to_row(self) -> Tuple:
        """Column values in table order."""
        return (
            self.title, self.author, self.isbn, self.description,
            self.genre, self.publication_date, self.cover_image
        )


@dataclass
class WriteResult:
    """Outcome of one batch write."""
    records_submitted: int
    records_accepted: int

    @property
    def records_ignored(self) -> int:
        """Rows skipped because their ISBN was already stored."""
        return self.records_submitted - self.records_accepted


class PipelineState(Enum):
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    RATE_LIMITING = "rate_limiting"
    EXHAUSTED = "exhausted"
    TARGET_REACHED = "target_reached"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class IngestResult:
    """Summary of a single pipeline run."""
    query: str
    target: int
    pages_fetched: int = 0
    raw_records: int = 0
    valid_records: int = 0
    write_result: Optional[WriteResult] = None
    final_state: PipelineState = PipelineState.FETCHING
    transitions: List[PipelineState] = field(default_factory=list)

    @property
    def records_written(self) -> int:
        return self.write_result.records_accepted if self.write_result else 0

    @property
    def records_skipped(self) -> int:
        """Raw records dropped by validation."""
        return self.raw_records - self.valid_records
