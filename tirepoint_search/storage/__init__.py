"""Content store: terms, posts, post meta and options"""

from .models import (
    MetaClause,
    Option,
    Post,
    PostMeta,
    SearchLogRecord,
    SelectOption,
    TaxClause,
    Term,
    TireResult,
)
from .database import Database

__all__ = [
    "Term",
    "Post",
    "PostMeta",
    "Option",
    "TaxClause",
    "MetaClause",
    "SelectOption",
    "TireResult",
    "SearchLogRecord",
    "Database",
]
