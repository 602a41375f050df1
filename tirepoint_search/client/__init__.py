"""HTTP client for the vehicle selector"""

from .controller import SelectorClient, SelectorError, SelectorState, archive_path

__all__ = ["SelectorClient", "SelectorError", "SelectorState", "archive_path"]
