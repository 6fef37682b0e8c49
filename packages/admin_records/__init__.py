"""Public interface for the ``admin_records`` package.

Record normalization and aggregation for the admin console: coercion of
loosely typed values, shape normalization of store nodes, classification,
deduplication, year/month aggregation, tree search, locked staff rows and the
document store seam. Only symbol re-exports live here.
"""

from .aggregate import (
    ALL,
    build_year_month_matrix,
    filter_rows,
    group_by_year_month,
    summarize,
)
from .classify import (
    approval_state,
    classify_category,
    deletion_action,
    detect_category,
    is_approval_like,
    is_asset_like,
    is_rejected,
)
from .coercion import (
    coerce_number,
    format_currency_inr,
    format_display_date,
    js_round,
    parse_date_flexible,
)
from .dedupe import dedupe_by, merge_and_dedupe, petty_signature, signature
from .errors import PathError, StoreError, StoreReadError, StoreWriteError
from .models import (
    CANONICAL_CATEGORIES,
    ApprovalState,
    Category,
    MatrixRow,
    NormalizedRecord,
    Summary,
    YearMonthGrouping,
    YearMonthMatrix,
)
from .records import extract_fields
from .search import find_records_matching, search_paths
from .shapes import expand_children, flatten_hinted_records, looks_like_single_record, normalize_node_to_array
from .store import DocumentStore, InMemoryStore, Subscription

__all__ = [
    # Coercion
    "coerce_number",
    "js_round",
    "parse_date_flexible",
    "format_display_date",
    "format_currency_inr",
    # Shapes / records
    "normalize_node_to_array",
    "looks_like_single_record",
    "expand_children",
    "flatten_hinted_records",
    "extract_fields",
    # Classification
    "is_approval_like",
    "is_rejected",
    "approval_state",
    "is_asset_like",
    "detect_category",
    "classify_category",
    "deletion_action",
    # Dedupe
    "signature",
    "merge_and_dedupe",
    "dedupe_by",
    "petty_signature",
    # Aggregation
    "ALL",
    "group_by_year_month",
    "filter_rows",
    "build_year_month_matrix",
    "summarize",
    # Search
    "find_records_matching",
    "search_paths",
    # Store
    "DocumentStore",
    "InMemoryStore",
    "Subscription",
    # Errors
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "PathError",
    # Models / types
    "ApprovalState",
    "Category",
    "CANONICAL_CATEGORIES",
    "NormalizedRecord",
    "YearMonthGrouping",
    "MatrixRow",
    "YearMonthMatrix",
    "Summary",
]
