"""Drafting workflow: field recommendations, reference search, section drafts.

These functions update the in-memory :class:`PaperData` the way the
interactive session does: one AI request at a time, each result written back
as soon as it arrives.  Batch helpers are fail-fast; the first
:class:`ServiceError` stops the batch and propagates, and anything already
written stays written.
"""

import logging
from typing import Callable, Optional

from papergen.ai_service import generate_text, parse_json_response
from papergen.config import load_settings
from papergen.errors import ReferencesNotFoundError, ServiceError
from papergen.models import (
    INFO_FIELDS,
    SECTION_KEYS,
    SECTION_TITLES,
    FoundPaper,
    PaperData,
)
from papergen.prompts import (
    build_draft_prompt,
    build_marker,
    build_recommendation_prompt,
    build_refine_prompt,
    build_reference_search_prompt,
)

logger = logging.getLogger(__name__)

Generator = Callable[[str], str]
Progress = Optional[Callable[[str], None]]

MARKER_KINDS = ["figure", "table"]


def _search_generator() -> Generator:
    return lambda prompt: generate_text(prompt, use_search=True)


def _draft_generator() -> Generator:
    model = load_settings()["draft_model"]
    return lambda prompt: generate_text(prompt, model=model)


def _refine_generator() -> Generator:
    return lambda prompt: generate_text(prompt)


def _check_section(key: str) -> None:
    if key not in SECTION_KEYS:
        raise ValueError(f"Unknown section '{key}'")


# ---------------------------------------------------------------------------
# Research info fields
# ---------------------------------------------------------------------------


def recommend_field(
    field_name: str,
    paper: PaperData,
    topic: str = "",
    *,
    generate: Optional[Generator] = None,
) -> str:
    """Ask the AI for a value for one research-info field and store it.

    Args:
        field_name: One of INFO_FIELDS.
        paper: Paper to read context from and write the value into.
        topic: Free-text research topic steering the suggestion.
        generate: ``callable(prompt) -> str``; defaults to search-grounded text.

    Returns:
        The recommended text.

    Raises:
        ValueError: If *field_name* is not a recommendable field.
        ServiceError: If the AI call fails.
    """
    if field_name not in INFO_FIELDS:
        raise ValueError(f"Field '{field_name}' cannot be recommended")
    generate = generate or _search_generator()
    value = generate(build_recommendation_prompt(field_name, paper, topic)).strip()
    setattr(paper, field_name, value)
    return value


def fill_all_fields(
    paper: PaperData,
    topic: str = "",
    *,
    generate: Optional[Generator] = None,
    on_progress: Progress = None,
) -> list[str]:
    """Recommend every info field in turn, each seeing the ones before it.

    Returns:
        Names of the fields filled.
    """
    generate = generate or _search_generator()
    filled = []
    for field_name in INFO_FIELDS:
        if on_progress:
            on_progress(f"Generating {field_name.replace('_', ' ')}...")
        recommend_field(field_name, paper, topic, generate=generate)
        filled.append(field_name)
    logger.info("Filled %d research field(s)", len(filled))
    return filled


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------


def find_references(topic: str, *, generate: Optional[Generator] = None) -> list[FoundPaper]:
    """Ask the AI for relevant papers on *topic*.

    The reply must be ``{"papers": [...]}``; a fenced code block around it is
    tolerated.

    Raises:
        ReferencesNotFoundError: If the call fails or the reply is not that JSON.
    """
    generate = generate or _search_generator()
    try:
        raw = generate(build_reference_search_prompt(topic))
    except ServiceError as exc:
        raise ReferencesNotFoundError(f"references not found: {exc}") from exc

    try:
        data = parse_json_response(raw)
    except ValueError as exc:
        logger.debug("Unparsable reference search reply: %.200s", raw)
        raise ReferencesNotFoundError("references not found: reply was not valid JSON") from exc
    if not isinstance(data, dict):
        raise ReferencesNotFoundError("references not found: expected a JSON object")

    papers = [FoundPaper.from_dict(p) for p in data.get("papers") or [] if isinstance(p, dict)]
    logger.info("Found %d paper(s) for '%s'", len(papers), topic)
    return papers


def add_references(paper: PaperData, bibtex_entries: list[str]) -> str:
    """Append BibTeX entries to the paper's references, blank-line separated.

    Returns:
        The updated references text.
    """
    addition = "\n\n".join(e.strip() for e in bibtex_entries if e.strip())
    if not addition:
        return paper.references
    existing = paper.references.strip()
    paper.references = f"{existing}\n\n{addition}" if existing else addition
    return paper.references


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def draft_section(key: str, paper: PaperData, *, generate: Optional[Generator] = None) -> str:
    """Draft one section; the new draft replaces raw and clears refined."""
    _check_section(key)
    generate = generate or _draft_generator()
    draft = generate(build_draft_prompt(SECTION_TITLES[key], paper)).strip()
    paper.sections[key].raw = draft
    paper.sections[key].refined = ""
    return draft


def refine_section(
    key: str,
    paper: PaperData,
    *,
    generate: Optional[Generator] = None,
) -> Optional[str]:
    """Refine one section's raw draft into ``refined``.

    Returns:
        The refined text, or None when there is no draft to refine.
    """
    _check_section(key)
    raw = paper.sections[key].raw
    if not raw.strip():
        logger.debug("Nothing to refine in %s", key)
        return None
    generate = generate or _refine_generator()
    refined = generate(build_refine_prompt(SECTION_TITLES[key], raw, paper)).strip()
    paper.sections[key].refined = refined
    return refined


def draft_all_sections(
    paper: PaperData,
    *,
    generate: Optional[Generator] = None,
    on_progress: Progress = None,
) -> list[str]:
    """Draft every section whose raw text is still empty.

    Returns:
        Keys of the sections drafted.
    """
    generate = generate or _draft_generator()
    drafted = []
    for key in SECTION_KEYS:
        if paper.sections[key].raw.strip():
            continue
        if on_progress:
            on_progress(f"Drafting {SECTION_TITLES[key]}...")
        draft_section(key, paper, generate=generate)
        drafted.append(key)
    logger.info("Drafted %d section(s)", len(drafted))
    return drafted


def refine_all_sections(
    paper: PaperData,
    *,
    generate: Optional[Generator] = None,
    on_progress: Progress = None,
) -> list[str]:
    """Refine every section that has a raw draft.

    Returns:
        Keys of the sections refined.
    """
    generate = generate or _refine_generator()
    refined = []
    for key in SECTION_KEYS:
        if not paper.sections[key].raw.strip():
            continue
        if on_progress:
            on_progress(f"Refining {SECTION_TITLES[key]}...")
        refine_section(key, paper, generate=generate)
        refined.append(key)
    logger.info("Refined %d section(s)", len(refined))
    return refined


def insert_marker(paper: PaperData, key: str, kind: str) -> str:
    """Append a template figure/table marker to a section's raw text."""
    _check_section(key)
    if kind not in MARKER_KINDS:
        raise ValueError(f"Marker kind must be one of {', '.join(MARKER_KINDS)}")
    paper.sections[key].raw += f"\n\n{build_marker(kind)}\n\n"
    return paper.sections[key].raw
