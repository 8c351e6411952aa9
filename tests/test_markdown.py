"""Tests for markdown-to-LaTeX normalization."""

from papergen.markdown import convert_bold, convert_italic, normalize_markdown


def test_bold():
    assert normalize_markdown("This is **bold** text") == "This is \\textbf{bold} text"


def test_bold_is_non_greedy():
    assert convert_bold("**a** and **b**") == "\\textbf{a} and \\textbf{b}"


def test_italic():
    assert normalize_markdown("an *italic* word") == "an \\textit{italic} word"


def test_bold_and_italic_together():
    text = "**Key** result is *significant* here"
    assert normalize_markdown(text) == "\\textbf{Key} result is \\textit{significant} here"


def test_italic_requires_tight_delimiters():
    assert convert_italic("a * b * c") == "a * b * c"
    assert convert_italic("2 * 3 = 6 and 4*5") == "2 * 3 = 6 and 4*5"


def test_italic_skips_bold_asterisks():
    # Without the bold pass, the italic pattern must not eat **x**
    assert convert_italic("**x**") == "**x**"


def test_single_char_italic():
    assert convert_italic("variable *x* here") == "variable \\textit{x} here"


def test_other_markdown_untouched():
    text = "# Heading\n- item\n`code`"
    assert normalize_markdown(text) == text


def test_idempotent():
    once = normalize_markdown("**Bold** then *italic* then plain")
    assert normalize_markdown(once) == once
