"""Vehicle selector lookups and tire search"""

from .handler import SearchHandler
from .pricing import PriceFormatter, availability
from .search_log import SearchLog

__all__ = [
    "SearchHandler",
    "PriceFormatter",
    "SearchLog",
    "availability",
]
