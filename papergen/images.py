"""Resolve the figure manifest into image files.

Each manifest entry either gets an AI-generated image or, at packaging time,
a placeholder PNG that spells out what the figure should show.
"""

import io
import logging
import textwrap
from dataclasses import dataclass, field
from typing import Callable, Optional

from papergen.errors import ServiceError
from papergen.models import ImageDescriptor
from papergen.prompts import build_image_prompt

logger = logging.getLogger(__name__)

# Placeholder canvas, in pixels
PLACEHOLDER_SIZE = (800, 600)
PLACEHOLDER_DPI = 100
BACKGROUND = "#2D3748"
BORDER = "#4A5568"
BORDER_WIDTH_PX = 10
HEADING_COLOR = "#E2E8F0"
BODY_COLOR = "#A0AEC0"
HEADING_PX = 40
BODY_PX = 24
LINE_HEIGHT_PX = 30
MAX_LINES = 5

# Average glyph width of the body font relative to its pixel size
_CHAR_WIDTH_RATIO = 0.55


@dataclass
class ImageBatchResult:
    """Outcome of one generate-all-images run."""

    generated: dict[str, bytes] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)

    @property
    def partial_failure(self) -> bool:
        return bool(self.failed)


def resolve_images(
    images: list[ImageDescriptor],
    *,
    existing: Optional[dict[str, bytes]] = None,
    generate: Optional[Callable[[str], bytes]] = None,
    on_progress: Optional[Callable[[str], None]] = None,
) -> ImageBatchResult:
    """Generate an image for every manifest entry that does not have one yet.

    Entries are processed one at a time, in manifest order.  A failure on one
    entry is recorded and the batch carries on with the next.

    Args:
        images: Manifest from the assembler.
        existing: Payloads from an earlier run, keyed by filename; reused as-is.
        generate: ``callable(prompt) -> bytes``; defaults to the AI image service.
        on_progress: Optional callback receiving a status line per entry.

    Returns:
        ImageBatchResult with generated payloads and failed filenames.
    """
    if generate is None:
        from papergen.ai_service import generate_image as generate

    result = ImageBatchResult()
    existing = existing or {}

    for image in images:
        if existing.get(image.filename):
            result.generated[image.filename] = existing[image.filename]
            continue
        if on_progress:
            on_progress(f"Generating {image.filename}...")
        try:
            result.generated[image.filename] = generate(build_image_prompt(image.description))
        except ServiceError as exc:
            logger.warning("Failed to generate %s: %s", image.filename, exc)
            result.failed.append(image.filename)

    if result.partial_failure:
        logger.warning(
            "%d of %d image(s) could not be generated; placeholders will be used",
            len(result.failed),
            len(images),
        )
    else:
        logger.info("All %d image(s) available", len(images))
    return result


# ---------------------------------------------------------------------------
# Placeholder drawing
# ---------------------------------------------------------------------------


def wrap_lines(text: str, max_width_px: int, *, max_lines: int = MAX_LINES) -> list[str]:
    """Word-wrap *text* to fit *max_width_px* and cap it at *max_lines*.

    When lines are dropped, ``...`` is appended to the last kept line.
    """
    max_chars = max(1, int(max_width_px / (BODY_PX * _CHAR_WIDTH_RATIO)))
    lines = textwrap.wrap(text, width=max_chars) or [""]
    if len(lines) > max_lines:
        lines = lines[:max_lines]
        lines[-1] = lines[-1].rstrip() + "..."
    return lines


def placeholder_blocks(image: ImageDescriptor) -> list[tuple[int, list[str]]]:
    """Text blocks of the placeholder as ``(top_y_px, lines)`` pairs."""
    width = PLACEHOLDER_SIZE[0]
    return [
        (160, wrap_lines(f"Filename: {image.filename}", width - 50)),
        (240, wrap_lines(f'Caption: "{image.caption}"', width - 100)),
        (380, wrap_lines(f'AI-Suggested Content: "{image.description}"', width - 100)),
    ]


def create_placeholder_image(image: ImageDescriptor) -> bytes:
    """Draw a placeholder PNG describing *image*.

    Layout: bordered dark canvas, bold heading, then filename, caption and
    description blocks, each wrapped and capped at five lines.

    Returns:
        PNG bytes.
    """
    from matplotlib.backends.backend_agg import FigureCanvasAgg
    from matplotlib.figure import Figure
    from matplotlib.patches import Rectangle

    width, height = PLACEHOLDER_SIZE
    px_to_pt = 72 / PLACEHOLDER_DPI

    fig = Figure(figsize=(width / PLACEHOLDER_DPI, height / PLACEHOLDER_DPI), dpi=PLACEHOLDER_DPI)
    FigureCanvasAgg(fig)
    fig.patch.set_facecolor(BACKGROUND)
    fig.add_artist(
        Rectangle(
            (0, 0),
            1,
            1,
            transform=fig.transFigure,
            fill=False,
            edgecolor=BORDER,
            linewidth=BORDER_WIDTH_PX * px_to_pt,
        )
    )

    def _y(px: float) -> float:
        return 1 - px / height

    fig.text(
        0.5,
        _y(100),
        "PLACEHOLDER IMAGE",
        ha="center",
        va="center",
        color=HEADING_COLOR,
        fontsize=HEADING_PX * px_to_pt,
        fontweight="bold",
        family="sans-serif",
    )
    for top, lines in placeholder_blocks(image):
        for i, line in enumerate(lines):
            fig.text(
                0.5,
                _y(top + i * LINE_HEIGHT_PX),
                line,
                ha="center",
                va="center",
                color=BODY_COLOR,
                fontsize=BODY_PX * px_to_pt,
                family="sans-serif",
            )

    buf = io.BytesIO()
    fig.savefig(buf, format="png", facecolor=fig.get_facecolor())
    return buf.getvalue()


def image_payload(image: ImageDescriptor, generated: dict[str, bytes]) -> bytes:
    """Generated bytes for *image* if available, else a placeholder."""
    payload = generated.get(image.filename)
    if payload:
        return payload
    logger.debug("Using placeholder for %s", image.filename)
    return create_placeholder_image(image)
