"""Minimal markdown-to-LaTeX conversion for drafted section text.

Only bold (``**X**``) and italic (``*X*``) are recognised. Anything else the
model might emit is passed through untouched.
"""

import re

_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")

# A lone asterisk on each side, content not starting or ending with a space
# or another asterisk. The look-arounds keep it off the inner asterisks of
# bold spans.
_ITALIC_RE = re.compile(r"(?<!\*)\*(?!\*)([^\s*](?:.*?[^\s*])?)(?<!\*)\*(?!\*)")


def convert_bold(text: str) -> str:
    return _BOLD_RE.sub(r"\\textbf{\1}", text)


def convert_italic(text: str) -> str:
    return _ITALIC_RE.sub(r"\\textit{\1}", text)


def normalize_markdown(text: str) -> str:
    """Convert bold then italic markdown spans to LaTeX commands.

    Bold runs first so that ``**X**`` never leaves stray single asterisks
    for the italic pass.

    Args:
        text: Section text as drafted.

    Returns:
        Text with ``\\textbf{}`` / ``\\textit{}`` in place of the markdown.
    """
    return convert_italic(convert_bold(text))
