"""Assemble an IEEEtran LaTeX document from PaperData.

The document is a fixed template with six named slots::

    %%TITLE%%  %%AUTHORS%%  %%ABSTRACT%%  %%KEYWORDS%%  %%SECTIONS%%  %%REFERENCES%%

Only the slots and the document-class option (journal/conference) depend on
the input.  Body sections go through the markdown normalizer and the
placeholder pipeline with one counter for the whole document, so figures are
numbered ``figure_1.png``, ``figure_2.png``, ... across sections.
"""

import logging
import re

from papergen.markdown import normalize_markdown
from papergen.models import (
    SECTION_KEYS,
    SECTION_TITLES,
    AssembledDocument,
    Author,
    ImageDescriptor,
    PaperData,
)
from papergen.placeholders import PlaceholderCounter, process_placeholders
from papergen.references import format_references

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Template
# ---------------------------------------------------------------------------

LATEX_TEMPLATE = r"""\documentclass[%%DOCCLASS%%]{IEEEtran}

% *** GRAPHICS RELATED PACKAGES ***
\usepackage{graphicx}
\graphicspath{ {./images/} }

% *** CITATION PACKAGES ***
\usepackage{cite}

% *** MATH PACKAGES ***
\usepackage{amsmath}
\usepackage{amssymb}
\usepackage{amsfonts}

% *** SPECIALIZED LIST PACKAGES ***
\usepackage{algorithmic}

% *** ALIGNMENT PACKAGES ***
\usepackage{array}

% *** PDF, URL AND HYPERLINK PACKAGES ***
\usepackage{url}

% correct bad hyphenation here
\hyphenation{op-tical net-works semi-conduc-tor}


\begin{document}
%
% paper title
\title{%%TITLE%%}


% author names and affiliations
\author{
%%AUTHORS%%
}

% make the title area
\maketitle

% As a general rule, do not put math, special symbols or citations
% in the abstract or keywords.
\begin{abstract}
%%ABSTRACT%%
\end{abstract}

% Note that keywords are not normally used for peerreview papers.
\begin{IEEEkeywords}
%%KEYWORDS%%
\end{IEEEkeywords}

% For peerreview papers, this IEEEtran command inserts a page break and
% creates the second title. It will be ignored for other modes.
\IEEEpeerreviewmaketitle

%%SECTIONS%%


% Can use something like this to put references on a page
% by themselves when using endfloat and the captionsoff option.
\ifCLASSOPTIONcaptionsoff
  \newpage
\fi

% references section
\begin{thebibliography}{1}

%%REFERENCES%%

\end{thebibliography}


% that's all folks
\end{document}"""

_SLOT_RE = re.compile(r"%%(DOCCLASS|TITLE|AUTHORS|ABSTRACT|KEYWORDS|SECTIONS|REFERENCES)%%")

AUTHOR_SEPARATOR = "\n\\and\n"

# AI output sometimes repeats the section label at the start of the text
_ABSTRACT_LABEL_RE = re.compile(r"^Abstract\b\s*[-\u2013\u2014:.]?\s*", re.IGNORECASE)
_KEYWORDS_LABEL_RE = re.compile(
    r"^(?:\*Keywords\*|Keywords\b|Index Terms\b)\s*[-\u2013\u2014:.]?\s*",
    re.IGNORECASE,
)
_NUMERAL_PREFIX_RE = re.compile(r"^[IVX]+\.\s*")


# ---------------------------------------------------------------------------
# Pieces
# ---------------------------------------------------------------------------


def document_class_option(venue_type: str) -> str:
    return "journal" if venue_type == "journal" else "conference"


def render_author(author: Author) -> str:
    details = [f"\\textit{{{author.affiliation}}}"]
    if author.email.strip():
        details.append(f"Email: {author.email.strip()}")
    block = " \\\\ ".join(details)
    return f"\\IEEEauthorblockN{{{author.name}}} \\\\ \\IEEEauthorblockA{{{block}}}"


def render_authors(authors: list[Author]) -> str:
    """Render IEEE author blocks joined by ``\\and``."""
    return AUTHOR_SEPARATOR.join(render_author(a) for a in authors)


def strip_leading_label(text: str, pattern: re.Pattern) -> str:
    """Remove one occurrence of *pattern* from the start of *text*."""
    return pattern.sub("", text, count=1).strip()


def strip_duplicate_title(text: str, title: str) -> str:
    """Drop a leading heading like ``I. Introduction`` or ``V. V. DISCUSSION``.

    Args:
        text: Section content.
        title: Display title of the section, e.g. ``"V. Discussion"``.

    Returns:
        Content without the duplicated heading.
    """
    bare = _NUMERAL_PREFIX_RE.sub("", title)
    pattern = re.compile(rf"^\s*(?:[IVX]+\.\s*)+{re.escape(bare)}\s*", re.IGNORECASE)
    return pattern.sub("", text, count=1).strip()


def _effective(paper: PaperData, key: str) -> str:
    section = paper.sections.get(key)
    return section.effective if section else ""


def render_section(
    key: str,
    content: str,
    counter: PlaceholderCounter,
    images: list[ImageDescriptor],
) -> str:
    title = SECTION_TITLES[key]
    content = strip_duplicate_title(content, title)
    result = process_placeholders(normalize_markdown(content), counter)
    images.extend(result.images)
    command = "section*" if key == "acknowledgment" else "section"
    return f"\\{command}{{{title}}}\n{result.text}"


def render_sections(
    paper: PaperData,
    counter: PlaceholderCounter,
    images: list[ImageDescriptor],
) -> str:
    """Render body sections in canonical order, skipping empty ones."""
    rendered = []
    for key in SECTION_KEYS:
        if key in ("abstract", "keywords"):
            continue
        content = _effective(paper, key)
        if not content:
            continue
        rendered.append(render_section(key, content, counter, images))
    return "\n\n".join(rendered)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def generate_latex(paper: PaperData) -> AssembledDocument:
    """Build the full LaTeX source and the image manifest for *paper*.

    The input is not modified.  Empty sections are omitted and malformed
    references or markers degrade to placeholder text; nothing here raises
    for a well-formed PaperData.

    Args:
        paper: Current snapshot of the paper.

    Returns:
        AssembledDocument with the LaTeX string and the figures to produce.
    """
    counter = PlaceholderCounter()
    images: list[ImageDescriptor] = []

    slots = {
        "DOCCLASS": document_class_option(paper.venue_type),
        "TITLE": paper.title,
        "AUTHORS": render_authors(paper.authors),
        "ABSTRACT": strip_leading_label(_effective(paper, "abstract"), _ABSTRACT_LABEL_RE),
        "KEYWORDS": strip_leading_label(_effective(paper, "keywords"), _KEYWORDS_LABEL_RE),
        "SECTIONS": render_sections(paper, counter, images),
        "REFERENCES": format_references(paper.references),
    }
    latex = _SLOT_RE.sub(lambda m: slots[m.group(1)], LATEX_TEMPLATE)

    logger.info(
        "Assembled LaTeX: %d figure(s), %d table(s)", counter.figures, counter.tables
    )
    return AssembledDocument(latex=latex, images=images)
