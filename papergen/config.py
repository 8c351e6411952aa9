"""Settings and paper-file loading.

Settings live in ``~/.papergen/settings.yml`` (or the file named by
``PAPERGEN_CONFIG``).  The paper itself is a YAML file mirroring
:class:`~papergen.models.PaperData`, which the CLI reads before and writes
after every command.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from papergen.errors import ConfigError
from papergen.models import (
    SECTION_KEYS,
    VENUE_TYPES,
    Author,
    PaperData,
    SectionContent,
)

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".papergen"
SETTINGS_FILE = CONFIG_DIR / "settings.yml"

DEFAULT_SETTINGS: dict = {
    "text_model": "gemini-2.5-flash",
    "draft_model": "gemini-2.5-pro",
    "image_model": "gemini-2.5-flash-image",
    "timeout": 120,
}

_TEXT_FIELDS = [
    "title",
    "problem_statement",
    "objectives",
    "methodology_summary",
    "dataset",
    "key_results",
    "conclusions",
    "references",
]


def settings_path() -> Path:
    override = os.environ.get("PAPERGEN_CONFIG", "")
    return Path(override) if override else SETTINGS_FILE


def load_settings(path: Optional[Path] = None) -> dict:
    """Load settings, falling back to defaults for anything not set.

    Args:
        path: Settings file; defaults to :func:`settings_path`.

    Returns:
        Settings dict.

    Raises:
        ConfigError: If the file exists but is not a YAML mapping.
    """
    path = path or settings_path()
    settings = dict(DEFAULT_SETTINGS)
    if not path.exists():
        return settings
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid settings file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    settings.update(data)
    return settings


def ai_disabled() -> bool:
    """True when real AI calls must not be made (PAPERGEN_NO_AI or pytest)."""
    if os.environ.get("PAPERGEN_NO_AI", "").lower() in ("true", "1", "yes"):
        return True
    return "PYTEST_CURRENT_TEST" in os.environ


# ---------------------------------------------------------------------------
# Paper files
# ---------------------------------------------------------------------------


def validate_venue(venue: str) -> str:
    venue = (venue or "").strip().lower()
    if venue not in VENUE_TYPES:
        raise ConfigError(
            f"Unknown venue type '{venue}'; expected one of {', '.join(VENUE_TYPES)}"
        )
    return venue


def _section_from_value(key: str, value) -> SectionContent:
    if value is None:
        return SectionContent()
    if isinstance(value, str):
        return SectionContent(raw=value)
    if isinstance(value, dict):
        return SectionContent(
            raw=str(value.get("raw") or ""),
            refined=str(value.get("refined") or ""),
        )
    raise ConfigError(f"Section '{key}' must be text or a raw/refined mapping")


def paper_from_dict(data: dict) -> PaperData:
    """Build PaperData from a plain mapping, validating it on the way.

    Raises:
        ConfigError: On an unknown venue, unknown section, or bad author entry.
    """
    paper = PaperData()
    for name in _TEXT_FIELDS:
        setattr(paper, name, str(data.get(name) or ""))
    paper.venue_type = validate_venue(data.get("venue_type", "conference"))

    authors = []
    for entry in data.get("authors") or []:
        if not isinstance(entry, dict):
            raise ConfigError("Each author must be a mapping with name/affiliation/email")
        authors.append(
            Author(
                name=str(entry.get("name") or ""),
                affiliation=str(entry.get("affiliation") or ""),
                email=str(entry.get("email") or ""),
            )
        )
    paper.authors = authors or [Author()]

    sections = data.get("sections") or {}
    if not isinstance(sections, dict):
        raise ConfigError("'sections' must be a mapping")
    unknown = set(sections) - set(SECTION_KEYS)
    if unknown:
        raise ConfigError(f"Unknown section(s): {', '.join(sorted(unknown))}")
    for key in SECTION_KEYS:
        paper.sections[key] = _section_from_value(key, sections.get(key))
    return paper


def load_paper(path: Path) -> PaperData:
    """Read a paper YAML file.

    Raises:
        ConfigError: If the file is missing, unparsable or invalid.
    """
    if not path.exists():
        raise ConfigError(f"Paper file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid paper file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Paper file {path} must contain a mapping")
    return paper_from_dict(data)


def save_paper(paper: PaperData, path: Path) -> Path:
    """Write *paper* to *path* as YAML, keeping field order."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.dump(paper.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True)
    )
    logger.info("Paper saved to %s", path)
    return path
