"""Tests for writing the LaTeX project to disk and to a zip archive."""

import zipfile
from unittest.mock import patch

import pytest
import yaml

from papergen.errors import ConfigError
from papergen.models import AssembledDocument, ImageDescriptor
from papergen.packaging import (
    FINAL_CHECKLIST,
    GENERATED_RECORD,
    README_CONTENT,
    load_generated,
    project_files,
    write_project,
    write_zip,
)


@pytest.fixture
def document():
    return AssembledDocument(
        latex="\\documentclass[conference]{IEEEtran}\n\\begin{document}\n\\end{document}\n",
        images=[
            ImageDescriptor("figure_1.png", "Architecture.", "Architecture"),
            ImageDescriptor("figure_2.png", "Accuracy bars.", "Accuracy"),
        ],
    )


@pytest.fixture
def no_drawing():
    with patch("papergen.images.create_placeholder_image", return_value=b"PH") as mock:
        yield mock


# ---------------------------------------------------------------------------
# Output set
# ---------------------------------------------------------------------------


def test_project_files(document, no_drawing):
    files = project_files(document, {"figure_1.png": b"AI"})
    assert set(files) == {
        "paper.tex",
        "README.md",
        "images/figure_1.png",
        "images/figure_2.png",
        GENERATED_RECORD,
    }
    assert files["paper.tex"].startswith(b"\\documentclass")
    assert files["images/figure_1.png"] == b"AI"
    assert files["images/figure_2.png"] == b"PH"
    assert yaml.safe_load(files[GENERATED_RECORD]) == {"figure_1.png": "Architecture."}
    no_drawing.assert_called_once()


def test_project_without_images(no_drawing):
    files = project_files(AssembledDocument(latex="x"))
    assert set(files) == {"paper.tex", "README.md"}
    no_drawing.assert_not_called()


def test_write_project(tmp_path, document, no_drawing):
    written = write_project(document, tmp_path / "out")
    assert len(written) == 4
    assert (tmp_path / "out" / "paper.tex").read_text() == document.latex
    assert (tmp_path / "out" / "README.md").read_text() == README_CONTENT
    assert (tmp_path / "out" / "images" / "figure_2.png").read_bytes() == b"PH"
    assert not (tmp_path / "out" / GENERATED_RECORD).exists()


def test_write_project_drops_stale_record(tmp_path, document, no_drawing):
    out = tmp_path / "out"
    write_project(document, out, {"figure_1.png": b"AI"})
    assert (out / GENERATED_RECORD).exists()
    write_project(document, out)
    assert not (out / GENERATED_RECORD).exists()


def test_write_zip(tmp_path, document, no_drawing):
    zip_path = write_zip(document, tmp_path / "paper.zip", {"figure_2.png": b"AI"})
    with zipfile.ZipFile(zip_path) as archive:
        names = set(archive.namelist())
        assert names == {
            "paper.tex",
            "README.md",
            "images/figure_1.png",
            "images/figure_2.png",
            GENERATED_RECORD,
        }
        assert archive.read("images/figure_2.png") == b"AI"
        assert archive.read("images/figure_1.png") == b"PH"
        assert b"TODO" in archive.read("README.md")


def test_checklist_has_items():
    assert len(FINAL_CHECKLIST) == 7
    assert all(item.endswith(".") for item in FINAL_CHECKLIST)


# ---------------------------------------------------------------------------
# Reusing earlier AI images
# ---------------------------------------------------------------------------


def test_load_generated_round_trip(tmp_path, document, no_drawing):
    out = tmp_path / "out"
    write_project(document, out, {"figure_1.png": b"AI"})
    assert load_generated(out, document.images) == {"figure_1.png": b"AI"}


def test_load_generated_skips_changed_description(tmp_path, document, no_drawing):
    out = tmp_path / "out"
    write_project(document, out, {"figure_1.png": b"AI", "figure_2.png": b"AI2"})
    changed = [
        ImageDescriptor("figure_1.png", "A different diagram.", "Architecture"),
        document.images[1],
    ]
    assert load_generated(out, changed) == {"figure_2.png": b"AI2"}


def test_load_generated_skips_missing_file(tmp_path, document, no_drawing):
    out = tmp_path / "out"
    write_project(document, out, {"figure_1.png": b"AI"})
    (out / "images" / "figure_1.png").unlink()
    assert load_generated(out, document.images) == {}


def test_load_generated_without_record(tmp_path, document):
    assert load_generated(tmp_path / "never-built", document.images) == {}


def test_load_generated_bad_record(tmp_path, document):
    (tmp_path / GENERATED_RECORD).write_text("- not\n- a mapping\n")
    with pytest.raises(ConfigError):
        load_generated(tmp_path, document.images)
