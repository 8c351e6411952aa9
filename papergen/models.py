"""Paper data model: authors, sections, image manifest entries, found papers."""

from dataclasses import asdict, dataclass, field

# Canonical section order used for drafting and assembly
SECTION_KEYS = [
    "abstract",
    "keywords",
    "introduction",
    "related_work",
    "methodology",
    "results",
    "discussion",
    "conclusion",
    "acknowledgment",
]

SECTION_TITLES: dict[str, str] = {
    "abstract": "Abstract",
    "keywords": "Keywords",
    "introduction": "I. Introduction",
    "related_work": "II. Related Work",
    "methodology": "III. Methodology",
    "results": "IV. Results",
    "discussion": "V. Discussion",
    "conclusion": "VI. Conclusion",
    "acknowledgment": "Acknowledgment",
}

VENUE_TYPES = ["conference", "journal"]

# Free-text research fields the AI can recommend, in "fill all" order.
# The title goes last so it can draw on everything else.
INFO_FIELDS = [
    "problem_statement",
    "objectives",
    "methodology_summary",
    "dataset",
    "key_results",
    "conclusions",
    "title",
]


@dataclass
class Author:
    name: str = ""
    affiliation: str = ""
    email: str = ""


@dataclass
class SectionContent:
    raw: str = ""
    refined: str = ""

    @property
    def effective(self) -> str:
        """Refined text if present, otherwise the raw draft."""
        return self.refined.strip() or self.raw.strip()


def _empty_sections() -> dict[str, SectionContent]:
    return {key: SectionContent() for key in SECTION_KEYS}


@dataclass
class PaperData:
    title: str = ""
    authors: list[Author] = field(default_factory=lambda: [Author()])
    venue_type: str = "conference"
    problem_statement: str = ""
    objectives: str = ""
    methodology_summary: str = ""
    dataset: str = ""
    key_results: str = ""
    conclusions: str = ""
    references: str = ""
    sections: dict[str, SectionContent] = field(default_factory=_empty_sections)

    def to_dict(self) -> dict:
        return asdict(self)

    def info_fields(self) -> dict[str, str]:
        """Return the non-empty free-text research fields in declaration order."""
        values = {
            "title": self.title,
            "problem_statement": self.problem_statement,
            "objectives": self.objectives,
            "methodology_summary": self.methodology_summary,
            "dataset": self.dataset,
            "key_results": self.key_results,
            "conclusions": self.conclusions,
        }
        return {k: v for k, v in values.items() if v.strip()}


@dataclass
class ImageDescriptor:
    filename: str
    description: str
    caption: str


@dataclass
class FoundPaper:
    title: str
    authors: list[str] = field(default_factory=list)
    year: str = ""
    summary: str = ""
    bibtex: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "FoundPaper":
        authors = data.get("authors") or []
        if isinstance(authors, str):
            authors = [authors]
        return cls(
            title=str(data.get("title", "")),
            authors=[str(a) for a in authors],
            year=str(data.get("year", "")),
            summary=str(data.get("summary", "")),
            bibtex=str(data.get("bibtex", "")),
        )


@dataclass
class AssembledDocument:
    latex: str
    images: list[ImageDescriptor] = field(default_factory=list)
