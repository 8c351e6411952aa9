"""Shared test fixtures and helpers for the papergen test suite."""

import json
import subprocess

import pytest

from papergen.models import Author, PaperData


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Point settings at a non-existent file so defaults are always used."""
    monkeypatch.setenv("PAPERGEN_CONFIG", str(tmp_path / "no-settings.yml"))


@pytest.fixture
def paper():
    """A paper with two authors and no section content."""
    return PaperData(
        title="Adaptive Widgets for Edge Inference",
        authors=[
            Author(name="A", affiliation="X"),
            Author(name="B", affiliation="Y", email="b@y.com"),
        ],
    )


def completed(payload, returncode: int = 0) -> subprocess.CompletedProcess:
    """Build a CompletedProcess whose stdout is *payload* (JSON-encoded if not str)."""
    stdout = payload if isinstance(payload, str) else json.dumps(payload)
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr="")


def text_response(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}
