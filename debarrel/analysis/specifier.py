"""
Module specifier helpers.

Bundler-style specifiers may carry a loader prefix (``raw-loader!./file``) and
a query or hash suffix (``./file?inline``). Only the path portion is resolved
and rewritten; prefix and suffix are reattached verbatim.
"""

from typing import NamedTuple, Optional

from ..constants import JS_EXT_PATTERN


class ParsedSpecifier(NamedTuple):
    prefix: str
    path: str
    suffix: str


def parse_specifier(specifier: str) -> ParsedSpecifier:
    """
    Split a raw specifier into loader prefix, path and query/hash suffix.

    The prefix ends at the last ``!`` that precedes the first ``?`` or ``#``.

    Example:
        >>> parse_specifier("style-loader!css-loader!./app.css?inline")
        ParsedSpecifier(prefix='style-loader!css-loader!', path='./app.css', suffix='?inline')
    """
    last_bang = -1
    suffix_start = len(specifier)

    for index, char in enumerate(specifier):
        if char == "!":
            last_bang = index
        elif char in "?#":
            suffix_start = index
            break

    path_start = last_bang + 1
    return ParsedSpecifier(
        prefix=specifier[:path_start],
        path=specifier[path_start:suffix_start],
        suffix=specifier[suffix_start:],
    )


def strip_query(specifier: str) -> str:
    index = specifier.find("?")
    return specifier if index == -1 else specifier[:index]


def is_relative_or_absolute(specifier: str) -> bool:
    return specifier.startswith(".") or specifier.startswith("/")


def extension_of(specifier: str) -> Optional[str]:
    """Return the script extension a specifier ends with, or None."""
    match = JS_EXT_PATTERN.search(specifier)
    return match.group(0) if match else None


def ensure_extension(path: str, ext: Optional[str]) -> str:
    """Replace the script extension of ``path`` with ``ext``; a falsy ``ext`` strips it."""
    return JS_EXT_PATTERN.sub(ext or "", path, count=1)
