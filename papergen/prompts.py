"""Prompt builders for recommendation, drafting, refinement, search and images."""

from papergen.models import PaperData

MARKER_FORMAT = (
    "- [FIGURE: A clear description of what the visual should contain. "
    "Caption: A descriptive caption for the figure. The caption text ITSELF "
    'should NOT start with "Figure X:".]\n'
    "- [TABLE: A clear description of the table's content and columns. "
    "Caption: A descriptive caption for the table. The caption text ITSELF "
    'should NOT start with "Table Y:".]'
)

INTRODUCTION_RULE = (
    '**Special rule for "I. Introduction"**: the first paragraph of the '
    "introduction must be text. Do not place a [FIGURE: ...] or [TABLE: ...] "
    "placeholder at the very beginning of the section."
)


def humanize_field(name: str) -> str:
    """``problem_statement`` -> ``problem statement``."""
    return name.replace("_", " ").lower()


def build_recommendation_prompt(field_name: str, paper: PaperData, topic: str) -> str:
    """Prompt asking for a suggestion for one research-info field.

    The other non-empty fields are included as context; authors, sections and
    references are left out.
    """
    context = "\n".join(
        f"{humanize_field(key).title()}: {value}"
        for key, value in paper.info_fields().items()
        if key != field_name
    )
    readable = humanize_field(field_name)
    if field_name == "title":
        instruction = (
            "Based on the topic and context, generate a single, concise, and "
            "compelling title for the research paper."
        )
    else:
        instruction = (
            "Based on the topic and context, generate a high-quality suggestion "
            f'for the "{readable}".'
        )

    return (
        "You are an expert research assistant. Your task is to provide a "
        f'professional recommendation for the "{readable}" section of an IEEE '
        "research paper.\nUse web search to inform your response.\n\n"
        f'Primary Research Topic: "{topic or "Not specified. Infer from other fields."}"\n\n'
        "Existing Paper Information (for context):\n---\n"
        f"{context or 'No other information provided yet.'}\n---\n\n"
        f"{instruction}\n\n"
        "**Output Instructions:**\n"
        "- Provide ONLY the text for the requested section. Do not add any extra "
        'conversation or formatting like "Here is a suggestion:".\n'
        '- For the "title", the title should be academic and professional, '
        "avoiding overly long or repetitive phrasing.\n"
    )


def build_reference_search_prompt(topic: str) -> str:
    return (
        "You are a research assistant. Your task is to find relevant academic "
        "papers for a given topic and return the data in a specific JSON format.\n"
        "Use web search to find 3-5 highly relevant and recent academic papers "
        f'(from IEEE, ACM, arXiv, etc.) on the topic: "{topic}".\n\n'
        "**CRITICAL INSTRUCTION:** Your entire response MUST be a single, valid "
        "JSON object. Do not include any text, conversation, or markdown "
        "formatting before or after the JSON object.\n\n"
        'The JSON object must have a single key "papers", which is an array of '
        'objects. Each object must have the keys "title", "authors" (an array of '
        'strings), "year", "summary" (a concise one-sentence summary), and '
        '"bibtex" (the complete BibTeX entry).\n'
    )


def build_draft_prompt(section_title: str, paper: PaperData) -> str:
    """Prompt asking for a first draft of one section, with visual markers."""
    return (
        "You are an expert academic writer specializing in IEEE papers.\n"
        f'Your task is to draft the "{section_title}" section for a research paper '
        "based on the user's provided notes.\n"
        "The draft should be well-structured, written in a formal academic tone, "
        "and adhere to the conventions of IEEE publications.\n\n"
        "CRITICAL INSTRUCTION: Proactively insert placeholders for figures, "
        "diagrams, or tables wherever they would help the reader. The "
        "'Methodology' section should almost always have an architecture diagram "
        "and the 'Results' section should have charts or tables of the key findings.\n"
        f"The placeholder format MUST be either:\n{MARKER_FORMAT}\n\n"
        f"{INTRODUCTION_RULE}\n\n"
        "User's research notes:\n"
        f"Title: {paper.title}\n"
        f"Problem Statement: {paper.problem_statement}\n"
        f"Objectives: {paper.objectives}\n"
        f"Methodology Summary: {paper.methodology_summary}\n"
        f"Dataset: {paper.dataset}\n"
        f"Key Results: {paper.key_results}\n"
        f"Conclusions: {paper.conclusions}\n"
        f"Key References:\n{paper.references}\n\n"
        f'Now write a draft for the "{section_title}" section.\n'
        'For the "Abstract", provide a concise summary covering the problem, '
        "methods, results, and conclusion.\n"
        'For "Keywords", suggest 5-7 relevant keywords as a single comma-separated '
        'list. Do not include "Index Terms".\n'
        "For other sections, write a few paragraphs as appropriate.\n"
        "Output ONLY the text for the section. Do not include the section title "
        "or any introductory phrases.\n"
    )


def build_refine_prompt(section_title: str, raw_content: str, paper: PaperData) -> str:
    """Prompt asking to polish a draft while keeping its markers intact."""
    return (
        "You are an expert academic editor specializing in IEEE papers.\n"
        f'Your task is to refine the following draft of the "{section_title}" section.\n'
        "Improve clarity, conciseness, grammar, and flow. Keep the tone formal "
        "and academic. Do not add new information.\n\n"
        "IMPORTANT: The draft may contain placeholders like [FIGURE: ...] or "
        "[TABLE: ...].\n"
        "1. You MUST preserve every existing placeholder and its content exactly.\n"
        "2. Where a new figure or table would help, insert a placeholder in the "
        f"same format:\n{MARKER_FORMAT}\n\n"
        f"{INTRODUCTION_RULE}\n\n"
        f'Here is the draft for the "{section_title}" section:\n---\n'
        f"{raw_content}\n---\n\n"
        "For context, here are the core details of the paper:\n"
        f"Title: {paper.title}\n"
        f"Objectives: {paper.objectives}\n\n"
        "Output ONLY the refined text. Do not include the section title or any "
        'introductory phrases like "Here is the refined version:".\n'
    )


def build_image_prompt(description: str) -> str:
    return (
        "Create an academic-style visual for a research paper. The visual should "
        "be clear, professional, and suitable for an IEEE publication. "
        f'Description: "{description}". '
        "The style should be a clean diagram, chart, or graph."
    )


def build_marker(kind: str) -> str:
    """Template marker a user can append to a section and then edit."""
    tag = kind.upper()
    return f"[{tag}: A description of the {kind.lower()}. Caption: A descriptive caption.]"
