"""
Helpers for reading values asserted by the upstream authentication proxy.

Header values arrive through WSGI as latin-1 decoded strings, so UTF-8 data
sent by the proxy shows up as mojibake unless it is reinterpreted.
"""
import logging
import re
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DELIMITER_PATTERN = re.compile(r"[,;\s]+")


def split_delimited(value: Optional[Union[str, Iterable]]) -> List[str]:
    """
    Split a comma, semicolon or whitespace delimited value into trimmed,
    non-empty tokens. Iterables (e.g. YAML lists) are flattened.
    """
    if value is None:
        return []

    if isinstance(value, (list, tuple, set, frozenset)):
        tokens = []
        for item in value:
            tokens.extend(split_delimited(item))
        return tokens

    return [token.strip() for token in DELIMITER_PATTERN.split(str(value)) if token.strip()]


def convert_to_utf8(value: Optional[Union[str, bytes]]) -> Optional[str]:
    """
    Reinterpret a header value as UTF-8.

    Returns None when the value is missing or is not valid UTF-8, in which
    case callers keep the value they already have.
    """
    if value is None:
        return None

    try:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value.encode("iso-8859-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        logger.debug("Header value could not be reinterpreted as UTF-8, keeping it as is")
        return None


def iter_headers(headers) -> Iterator[Tuple[str, Union[str, bytes]]]:
    """Yield (name, value) pairs from a mapping or a sequence of pairs."""
    if headers is None:
        return iter(())
    if hasattr(headers, "items"):
        return iter(headers.items())
    return iter(headers)


def as_text(value: Optional[Union[str, bytes]]) -> Optional[str]:
    if isinstance(value, bytes):
        return value.decode("iso-8859-1")
    return value


def get_header(headers: Mapping[str, str], name: Optional[str]) -> Optional[str]:
    """Case-insensitive header lookup that also works on plain dicts."""
    if not name:
        return None

    wanted = name.strip().lower()
    for header_name, value in iter_headers(headers):
        if header_name.strip().lower() == wanted:
            return value
    return None


def read_header(headers: Mapping[str, str], name: Optional[str], convert: bool) -> Optional[str]:
    """Fetch a header value, optionally reinterpreted as UTF-8."""
    value = get_header(headers, name)

    if convert:
        converted = convert_to_utf8(value)
        if converted is not None:
            value = converted

    return as_text(value)
