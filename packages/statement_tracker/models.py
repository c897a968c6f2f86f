"""Data models and type aliases for ``statement_tracker``.

Three families live here:

- pydantic models describing the extraction output shape (the same shape is
  sent to the model as a strict JSON schema, see :mod:`.prompting`);
- pydantic models validating caller input at the HTTP/CLI boundary;
- ``TypedDict`` views returned by the service functions. They are plain,
  JSON-serializable mappings detached from the SQLAlchemy session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypedDict

from pydantic import BaseModel, ConfigDict, Field

type Direction = Literal["credit", "debit"]
type SortField = Literal["date", "amount", "description"]
type SortOrder = Literal["asc", "desc"]
type StatementStatus = Literal["processing", "completed", "failed"]

SORT_FIELDS: tuple[str, ...] = ("date", "amount", "description")
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


# ---------------------------------------------------------------------------
# Extraction output
# ---------------------------------------------------------------------------


class ExtractedTransaction(BaseModel):
    """One transaction as returned by the extraction service.

    Validation mirrors the schema constraint sent with the request and nothing
    more: a date string, a description string, a positive amount and one of
    two direction tags.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    date: str = Field(pattern=DATE_PATTERN, description="Date in YYYY-MM-DD format")
    description: str = Field(description="Clean transaction description")
    amount: float = Field(gt=0, description="Positive amount value")
    direction: Direction = Field(description="credit for money in, debit for money out")


class ExtractionResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    transactions: list[ExtractedTransaction]


# ---------------------------------------------------------------------------
# Boundary input
# ---------------------------------------------------------------------------


class CategoryInput(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    color: str = Field(min_length=1)


class CategoryAssignment(BaseModel):
    """Body of a categorization request; omitted fields clear the stored value."""

    model_config = ConfigDict(extra="forbid")

    category_id: int | None = None
    category_note: str | None = None


class TransactionListParams(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    category_id: int | None = None
    sort_by: SortField = "date"
    sort_order: SortOrder = "asc"
    num_items: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    cursor: str | None = None


class Credentials(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=8)
    name: str | None = None


class LoginInput(BaseModel):
    """Sign-in body; wrong or short values surface as invalid credentials."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    email: str
    password: str


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PaginationOptions:
    """Page size plus the opaque continuation cursor from a previous page.

    ``cursor=None`` starts from the beginning of the ordered result set.
    """

    num_items: int = DEFAULT_PAGE_SIZE
    cursor: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.num_items, bool) or not isinstance(self.num_items, int):
            raise ValueError("PaginationOptions.num_items must be an integer")
        if self.num_items <= 0:
            raise ValueError("PaginationOptions.num_items must be a positive integer")


# ---------------------------------------------------------------------------
# Service views
# ---------------------------------------------------------------------------


class UserDict(TypedDict):
    id: int
    email: str | None
    name: str | None
    is_anonymous: bool


class CategoryDict(TypedDict):
    id: int
    name: str
    color: str
    user_id: int


class StatementDict(TypedDict):
    id: int
    file_name: str
    upload_date: str
    status: StatementStatus
    transaction_count: int | None
    user_id: int


class TransactionDict(TypedDict):
    id: int
    date: str
    description: str
    amount: float
    direction: Direction
    category_id: int | None
    category_note: str | None
    user_id: int
    statement_id: int
    category: CategoryDict | None


class TransactionPage(TypedDict):
    page: list[TransactionDict]
    continue_cursor: str
    is_done: bool


class IngestionResult(TypedDict):
    statement_id: int
    transaction_count: int
