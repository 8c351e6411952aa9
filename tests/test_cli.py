"""CLI smoke tests via typer's CliRunner."""

import json
import zipfile
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from cli.main import app
from papergen.config import load_paper, save_paper
from papergen.errors import ImageGenerationError, ServiceError

runner = CliRunner()


@pytest.fixture
def paper_file(tmp_path, paper):
    path = tmp_path / "paper.yml"
    save_paper(paper, path)
    return path


@pytest.fixture
def no_drawing():
    with patch("papergen.images.create_placeholder_image", return_value=b"PH") as mock:
        yield mock


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "papergen 0.1.0" in result.output


class TestNew:
    def test_new_creates_file(self, tmp_path):
        path = tmp_path / "p.yml"
        result = runner.invoke(app, ["new", str(path), "--venue", "journal"])
        assert result.exit_code == 0
        assert load_paper(path).venue_type == "journal"

    def test_new_refuses_existing(self, paper_file):
        result = runner.invoke(app, ["new", str(paper_file)])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_new_bad_venue(self, tmp_path):
        path = tmp_path / "p.yml"
        result = runner.invoke(app, ["new", str(path), "--venue", "poster"])
        assert result.exit_code == 1
        assert "Unknown venue" in result.output
        assert not path.exists()


class TestDraft:
    def test_draft_one_section(self, paper_file):
        with patch("papergen.drafting.generate_text", return_value="Drafted text."):
            result = runner.invoke(app, ["draft", "results", "-p", str(paper_file)])
        assert result.exit_code == 0
        assert load_paper(paper_file).sections["results"].raw == "Drafted text."

    def test_draft_unknown_section(self, paper_file):
        result = runner.invoke(app, ["draft", "appendix", "-p", str(paper_file)])
        assert result.exit_code == 1
        assert "Unknown section" in result.output

    def test_draft_without_ai(self, paper_file):
        result = runner.invoke(app, ["draft", "results", "-p", str(paper_file)])
        assert result.exit_code == 1
        assert "AI service disabled" in result.output

    def test_draft_all_keeps_partial_progress(self, paper_file):
        with patch(
            "papergen.drafting.generate_text",
            side_effect=["An abstract.", ServiceError("quota exceeded")],
        ):
            result = runner.invoke(app, ["draft", "-p", str(paper_file)])
        assert result.exit_code == 1
        saved = load_paper(paper_file)
        assert saved.sections["abstract"].raw == "An abstract."
        assert saved.sections["keywords"].raw == ""

    def test_missing_paper_file(self, tmp_path):
        result = runner.invoke(app, ["draft", "-p", str(tmp_path / "nope.yml")])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestRefine:
    def test_refine_one_section(self, paper_file):
        paper = load_paper(paper_file)
        paper.sections["discussion"].raw = "Rough."
        save_paper(paper, paper_file)
        with patch("papergen.drafting.generate_text", return_value="Polished."):
            result = runner.invoke(app, ["refine", "discussion", "-p", str(paper_file)])
        assert result.exit_code == 0
        assert load_paper(paper_file).sections["discussion"].refined == "Polished."


class TestInfo:
    def test_recommend_unknown_field(self, paper_file):
        result = runner.invoke(app, ["recommend", "authors", "-p", str(paper_file)])
        assert result.exit_code == 1

    def test_recommend_saves_value(self, paper_file):
        with patch("papergen.drafting.generate_text", return_value="Small data."):
            result = runner.invoke(app, ["recommend", "dataset", "-p", str(paper_file)])
        assert result.exit_code == 0
        assert load_paper(paper_file).dataset == "Small data."

    def test_find_refs_add(self, paper_file):
        reply = json.dumps(
            {
                "papers": [
                    {
                        "title": "Pruning",
                        "authors": ["Ada"],
                        "year": "2024",
                        "summary": "S.",
                        "bibtex": "@article{ada2024, author={Ada}, title={Pruning}}",
                    }
                ]
            }
        )
        with patch("papergen.drafting.generate_text", return_value=reply):
            result = runner.invoke(app, ["find-refs", "pruning", "--add", "-p", str(paper_file)])
        assert result.exit_code == 0
        assert "Pruning" in result.output
        assert "ada2024" in load_paper(paper_file).references


class TestMarker:
    def test_marker_appended(self, paper_file):
        result = runner.invoke(app, ["marker", "results", "figure", "-p", str(paper_file)])
        assert result.exit_code == 0
        assert "[FIGURE:" in load_paper(paper_file).sections["results"].raw

    def test_marker_bad_kind(self, paper_file):
        result = runner.invoke(app, ["marker", "results", "chart", "-p", str(paper_file)])
        assert result.exit_code == 1


class TestBuild:
    @pytest.fixture
    def figure_paper(self, paper_file):
        paper = load_paper(paper_file)
        paper.sections["results"].raw = "[FIGURE: A bar chart. Caption: Accuracy]"
        save_paper(paper, paper_file)
        return paper_file

    def test_build_directory(self, tmp_path, figure_paper, no_drawing):
        out = tmp_path / "project"
        result = runner.invoke(app, ["build", "-p", str(figure_paper), "-o", str(out)])
        assert result.exit_code == 0
        assert "\\label{fig:accuracy_1}" in (out / "paper.tex").read_text()
        assert (out / "images" / "figure_1.png").read_bytes() == b"PH"
        assert (out / "README.md").exists()

    def test_build_zip(self, tmp_path, figure_paper, no_drawing):
        out = tmp_path / "project"
        result = runner.invoke(app, ["build", "-p", str(figure_paper), "-o", str(out), "--zip"])
        assert result.exit_code == 0
        with zipfile.ZipFile(tmp_path / "project.zip") as archive:
            assert "images/figure_1.png" in archive.namelist()
        assert not out.exists()

    def test_build_with_images_falls_back(self, tmp_path, figure_paper, no_drawing):
        out = tmp_path / "project"
        result = runner.invoke(app, ["build", "-p", str(figure_paper), "-o", str(out), "--images"])
        assert result.exit_code == 0
        assert "could not be generated" in result.output
        assert (out / "images" / "figure_1.png").read_bytes() == b"PH"

    def test_rebuild_only_requests_failed_images(self, tmp_path, paper_file, no_drawing):
        paper = load_paper(paper_file)
        paper.sections["results"].raw = (
            "[FIGURE: Loss curve. Caption: Loss]\n\n[FIGURE: Accuracy bars. Caption: Accuracy]"
        )
        save_paper(paper, paper_file)
        out = tmp_path / "project"
        args = ["build", "-p", str(paper_file), "-o", str(out), "--images"]

        with patch(
            "papergen.ai_service.generate_image",
            side_effect=[b"LOSS", ImageGenerationError("quota exceeded")],
        ):
            first = runner.invoke(app, args)
        assert first.exit_code == 0
        assert (out / "images" / "figure_2.png").read_bytes() == b"PH"

        with patch("papergen.ai_service.generate_image", return_value=b"ACC") as mock_generate:
            second = runner.invoke(app, args)
        assert second.exit_code == 0
        mock_generate.assert_called_once()
        assert 'Description: "Accuracy bars."' in mock_generate.call_args.args[0]
        assert (out / "images" / "figure_1.png").read_bytes() == b"LOSS"
        assert (out / "images" / "figure_2.png").read_bytes() == b"ACC"

    def test_rebuild_without_images_keeps_ai_images(self, tmp_path, figure_paper, no_drawing):
        out = tmp_path / "project"
        with patch("papergen.ai_service.generate_image", return_value=b"AI"):
            runner.invoke(app, ["build", "-p", str(figure_paper), "-o", str(out), "--images"])
        result = runner.invoke(app, ["build", "-p", str(figure_paper), "-o", str(out)])
        assert result.exit_code == 0
        assert (out / "images" / "figure_1.png").read_bytes() == b"AI"


class TestChecklist:
    def test_checklist(self):
        result = runner.invoke(app, ["checklist"])
        assert result.exit_code == 0
        assert "plagiarism" in result.output
