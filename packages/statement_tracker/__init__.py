"""Public interface for the ``statement_tracker`` package.

Users upload bank statements; an external model extracts transactions; the
package stores them and serves paginated, sortable, categorizable views. This
module only re-exports the stable API and the public models/types.
"""

from .api import (
    AuthContext,
    OpenAIStatementExtractor,
    PaginationOptions,
    StatementExtractor,
    create_category,
    delete_category,
    get_categories,
    get_statements,
    get_transaction_count,
    get_transactions,
    get_uncategorized_transactions,
    process_statement,
    update_category,
    update_transaction_category,
)
from .errors import (
    ExtractionError,
    NoTransactionsParsedError,
    NotAuthenticatedError,
    NotFoundError,
    StatementTrackerError,
    UploadRejectedError,
)
from .models import ExtractedTransaction, TransactionPage

__all__ = [
    # API
    "create_category",
    "delete_category",
    "get_categories",
    "get_statements",
    "get_transaction_count",
    "get_transactions",
    "get_uncategorized_transactions",
    "process_statement",
    "update_category",
    "update_transaction_category",
    # Models / types
    "AuthContext",
    "ExtractedTransaction",
    "OpenAIStatementExtractor",
    "PaginationOptions",
    "StatementExtractor",
    "TransactionPage",
    # Errors
    "ExtractionError",
    "NoTransactionsParsedError",
    "NotAuthenticatedError",
    "NotFoundError",
    "StatementTrackerError",
    "UploadRejectedError",
]
