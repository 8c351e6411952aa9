"""Figure/table placeholder extraction for drafted section text.

Drafted prose carries inline markers that request a visual at that point::

    [FIGURE: <what the visual shows> Caption: <caption text>]
    [TABLE: <what the table holds> Caption: <caption text>]

Older drafts may also contain plain-text tables, i.e. a ``TABLE IV`` line
followed by a caption block.  This module rewrites all three into LaTeX float
environments and collects an image manifest for the figures.

The work is an ordered pipeline of small text-to-text transforms:

  1. plain-text tables  -> ``[TABLE: ...]`` markers
  2. ``[FIGURE: ...]``  -> ``figure`` environment (+ manifest entry)
  3. ``[TABLE: ...]``   -> ``table`` environment

Each transform reports either :class:`Converted` or :class:`Unchanged` so the
literal-text fallback for malformed markers can be checked directly.  The only
state shared between transforms is the :class:`PlaceholderCounter` passed in by
the caller; one counter spans every section of one document.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Union

from papergen.models import ImageDescriptor

logger = logging.getLogger(__name__)

IMAGES_DIR = "images"

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# Descriptions and captions may hold bracketed citations such as [12], but
# never a bare closing bracket or the start of another marker, so a marker
# that lacks "Caption:" cannot swallow the next one.
_MARKER_TEXT = r"((?:[^\[\]]|\[(?!(?:FIGURE|TABLE):)[^\[\]]*\])*?)"

_FIGURE_RE = re.compile(
    rf"\[FIGURE:\s*{_MARKER_TEXT}\s*Caption:\s*{_MARKER_TEXT}\s*\]",
    re.IGNORECASE | re.DOTALL,
)
_TABLE_RE = re.compile(
    rf"\[TABLE:\s*{_MARKER_TEXT}\s*Caption:\s*{_MARKER_TEXT}\s*\]",
    re.IGNORECASE | re.DOTALL,
)

# "TABLE IV" / "Table 3." on its own line, then a caption body (possibly
# indented) that runs to the first blank line, a \section line, or the end
# of the text.
_PLAIN_TABLE_RE = re.compile(
    r"^TABLE[ \t]+[IVXLC\d]+\.?[ \t]*\n[ \t]*(\S.*?)(?=\n[ \t]*\n|\n\\section|\Z)",
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)

_OPEN_FIGURE_RE = re.compile(r"\[FIGURE:", re.IGNORECASE)
_OPEN_TABLE_RE = re.compile(r"\[TABLE:", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class PlaceholderCounter:
    """Running figure/table numbers for one document assembly."""

    figures: int = 0
    tables: int = 0


@dataclass
class Converted:
    text: str
    count: int


@dataclass
class Unchanged:
    text: str
    reason: str


TransformResult = Union[Converted, Unchanged]


@dataclass
class PlaceholderResult:
    text: str
    images: list[ImageDescriptor] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def collapse_whitespace(text: str) -> str:
    """Join lines with single spaces and squeeze whitespace runs."""
    return re.sub(r"\s+", " ", text.strip().replace("\n", " "))


def make_label(prefix: str, caption: str, number: int) -> str:
    """Build a LaTeX label such as ``fig:accuracy_over_training_epochs_1``.

    Args:
        prefix: Label namespace, ``fig`` or ``tab``.
        caption: Caption text the slug is derived from.
        number: Figure or table number appended to the slug.

    Returns:
        The label string (without ``\\label{}``).
    """
    slug = re.sub(r"\s+", "_", caption.lower())
    slug = re.sub(r"[^a-z0-9_]", "", slug)
    return f"{prefix}:{slug}_{number}"


def _unchanged(text: str, opener: re.Pattern, kind: str) -> Unchanged:
    if opener.search(text):
        logger.debug("Leaving malformed %s marker as literal text", kind)
        return Unchanged(text, f"{kind} marker without 'Caption:'")
    return Unchanged(text, f"no {kind} markers")


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------


def convert_plain_tables(text: str) -> TransformResult:
    """Rewrite plain-text ``TABLE <n>`` blocks as ``[TABLE: ...]`` markers.

    A block whose caption would not survive as a marker (a stray bracket)
    is left as it was.
    """
    count = 0

    def _replace(match: re.Match) -> str:
        nonlocal count
        caption = collapse_whitespace(match.group(1))
        marker = f'[TABLE: A table with the caption "{caption}". Caption: {caption}]'
        if not _TABLE_RE.fullmatch(marker):
            logger.debug("Leaving plain-text table as is: %.60s", caption)
            return match.group(0)
        count += 1
        return marker

    new_text = _PLAIN_TABLE_RE.sub(_replace, text)
    if count == 0:
        return Unchanged(text, "no plain-text tables")
    return Converted(new_text, count)


def convert_figure_markers(
    text: str,
    counter: PlaceholderCounter,
    images: list[ImageDescriptor],
) -> TransformResult:
    """Replace ``[FIGURE: ...]`` markers with figure environments.

    Every converted marker bumps ``counter.figures`` and appends an
    :class:`ImageDescriptor` to *images*, in encounter order.
    """
    count = 0

    def _replace(match: re.Match) -> str:
        nonlocal count
        count += 1
        counter.figures += 1
        n = counter.figures
        description = match.group(1).strip()
        caption = match.group(2).strip()
        filename = f"figure_{n}.png"
        images.append(
            ImageDescriptor(filename=filename, description=description, caption=caption)
        )
        return "\n".join(
            [
                "\\begin{figure}[htbp]",
                "\\centering",
                f"\\includegraphics[width=\\columnwidth]{{{IMAGES_DIR}/{filename}}}",
                f"\\caption{{{caption}}}",
                f"\\label{{{make_label('fig', caption, n)}}}",
                "\\end{figure}",
                f'% AI NOTE: This figure is described as: "{description}"',
            ]
        )

    new_text = _FIGURE_RE.sub(_replace, text)
    if count == 0:
        return _unchanged(text, _OPEN_FIGURE_RE, "figure")
    return Converted(new_text, count)


def convert_table_markers(text: str, counter: PlaceholderCounter) -> TransformResult:
    """Replace ``[TABLE: ...]`` markers with table environments.

    Tables have no file artifact, so nothing is added to the manifest; the
    tabular body is left as a TODO for the author.
    """
    count = 0

    def _replace(match: re.Match) -> str:
        nonlocal count
        count += 1
        counter.tables += 1
        n = counter.tables
        description = match.group(1).strip()
        caption = match.group(2).strip()
        return "\n".join(
            [
                "\\begin{table}[htbp]",
                "\\centering",
                f"\\caption{{{caption}}}",
                f"\\label{{{make_label('tab', caption, n)}}}",
                "% TODO: User must insert table content here, e.g., using a "
                "\\begin{tabular} environment.",
                "\\end{table}",
                "% AI NOTE: This is a placeholder for a table described as: "
                f'"{description}"',
            ]
        )

    new_text = _TABLE_RE.sub(_replace, text)
    if count == 0:
        return _unchanged(text, _OPEN_TABLE_RE, "table")
    return Converted(new_text, count)


def process_placeholders(text: str, counter: PlaceholderCounter) -> PlaceholderResult:
    """Run the full placeholder pipeline over one section's text.

    Args:
        text: Section text, already passed through the markdown normalizer.
        counter: Shared counter for the whole document; mutated in place.

    Returns:
        PlaceholderResult with the LaTeX text and the figures found, in order.
    """
    images: list[ImageDescriptor] = []
    result = convert_plain_tables(text)
    result = convert_figure_markers(result.text, counter, images)
    result = convert_table_markers(result.text, counter)
    return PlaceholderResult(text=result.text, images=images)
