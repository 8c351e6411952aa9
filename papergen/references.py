"""Turn loosely formatted BibTeX text into ``thebibliography`` items."""

import logging
import re
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)

UNKNOWN_REFERENCE = "Unknown reference."

_KEY_RE = re.compile(r"^(\w+)\s*\{\s*([^,\s]*?)\s*,")

# Braced values may nest one level, e.g. title = {{BERT}: Pre-training ...}
_BRACED = r"\{((?:[^{}]|\{[^{}]*\})*)\}"
_QUOTED = r'"([^"]*)"'


def _field_re(name: str) -> re.Pattern:
    return re.compile(
        rf"\b{name}\s*=\s*(?:{_BRACED}|{_QUOTED})",
        re.IGNORECASE | re.DOTALL,
    )


_TITLE_RE = _field_re("title")
_AUTHOR_RE = _field_re("author")


@dataclass
class ParsedReference:
    key: str
    author: str
    title: str


@dataclass
class UnparsedReference:
    position: int
    reason: str


ReferenceResult = Union[ParsedReference, UnparsedReference]


def _field_value(pattern: re.Pattern, entry: str) -> str | None:
    match = pattern.search(entry)
    if not match:
        return None
    value = match.group(1) if match.group(1) is not None else match.group(2)
    value = re.sub(r"\s+", " ", value).strip()
    return value or None


def split_entries(raw: str) -> list[str]:
    """Split raw references text on ``@`` and drop empty fragments."""
    return [part.strip() for part in raw.split("@") if part.strip()]


def shorten_authors(author: str) -> str:
    """Render ``A and B and C`` as ``A et al.``; single authors verbatim."""
    if " and " in author:
        return author.split(" and ")[0].strip() + " et al."
    return author


def parse_reference(entry: str, position: int) -> ReferenceResult:
    """Extract key, author and title from one ``@``-delimited fragment.

    Args:
        entry: Fragment text without the leading ``@``.
        position: 1-based position of the fragment in the references text.

    Returns:
        ParsedReference, or UnparsedReference naming what was missing.
    """
    key_match = _KEY_RE.match(entry)
    if not key_match or not key_match.group(2):
        return UnparsedReference(position, "no entry key")
    title = _field_value(_TITLE_RE, entry)
    if title is None:
        return UnparsedReference(position, "no title field")
    author = _field_value(_AUTHOR_RE, entry)
    if author is None:
        return UnparsedReference(position, "no author field")
    return ParsedReference(key=key_match.group(2), author=author, title=title)


def render_bibitem(result: ReferenceResult) -> str:
    if isinstance(result, UnparsedReference):
        return f"\\bibitem{{ref{result.position}}} {UNKNOWN_REFERENCE}"
    return f'\\bibitem{{{result.key}}}\n{shorten_authors(result.author)}, "{result.title}"'


def format_references(raw: str) -> str:
    """Render every entry in *raw* as a bibliography item, in order.

    Entries that cannot be parsed become numbered "Unknown reference." items
    rather than being dropped, so positions of the others never shift.

    Args:
        raw: References text, possibly several concatenated BibTeX entries.

    Returns:
        Items separated by blank lines (empty string for no entries).
    """
    items = []
    for position, entry in enumerate(split_entries(raw), start=1):
        result = parse_reference(entry, position)
        if isinstance(result, UnparsedReference):
            logger.debug("Reference %d unparsed: %s", position, result.reason)
        items.append(render_bibitem(result))
    return "\n\n".join(items)
