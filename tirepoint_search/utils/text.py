"""Text helpers for request input and term slugs."""

import re
import unicodedata

_TAG_RE = re.compile(r"<[^>]*>")
_OCTET_RE = re.compile(r"%[a-fA-F0-9]{2}")


def sanitize_text_field(value) -> str:
    """Clean a single-line form value.

    Strips tags and percent-encoded octets, drops line breaks and tabs,
    and collapses runs of whitespace.
    """
    if value is None:
        return ""
    text = str(value)
    text = _TAG_RE.sub("", text)
    text = _OCTET_RE.sub("", text)
    text = re.sub(r"[\r\n\t]+", " ", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def sanitize_title(value: str) -> str:
    """Turn a label such as ``"Sierra 1500"`` into a slug (``"sierra-1500"``)."""
    text = unicodedata.normalize("NFKD", str(value or ""))
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)  # Remove punctuation
    text = re.sub(r"[\s_-]+", "-", text)
    return text.strip("-")
