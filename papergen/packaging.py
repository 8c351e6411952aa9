"""Write the generated LaTeX project to a directory or a zip archive.

Output set::

    paper.tex
    README.md
    images/<filename>   one per manifest entry (generated or placeholder)
    generated-images.yml  which images came from the AI service, if any

The record lets a later build reuse those images instead of requesting them
again.
"""

import logging
import zipfile
from pathlib import Path
from typing import Optional

import yaml

from papergen.errors import ConfigError
from papergen.images import image_payload
from papergen.models import AssembledDocument, ImageDescriptor

logger = logging.getLogger(__name__)

TEX_FILENAME = "paper.tex"
README_FILENAME = "README.md"
IMAGES_DIRNAME = "images"
# Filenames of AI-generated images mapped to the description they were drawn from
GENERATED_RECORD = "generated-images.yml"

README_CONTENT = """# Your IEEE Paper Project

This project was generated by papergen.

## Getting Started

1. Open `paper.tex` in your favourite LaTeX editor (e.g. Overleaf).
2. Compile the document with the IEEEtran class available.

## Your Task

* **Images:** Figures are in the `images/` folder. Any figure that was not
  generated with AI is a placeholder describing what it should show. Replace
  any image with your own, keeping the filename the same.
* **Tables:** Find the `TODO` comments in `paper.tex` and add your tabular data.
"""

FINAL_CHECKLIST = [
    "Verify all scientific claims, data, and numerical results. You are responsible for the accuracy of your research.",
    "Check all formulas and mathematical notations for correctness.",
    "Ensure all references and citations are accurate and properly formatted according to your target venue's guidelines.",
    "Run your own plagiarism check. This tool helps with phrasing, but ensuring originality is your responsibility.",
    "Carefully read and adapt the paper to the specific author guidelines of the IEEE journal or conference you are submitting to.",
    "Proofread the entire manuscript for any remaining grammatical errors or typos.",
    "Confirm that the contributions and conclusions accurately reflect the work you have performed.",
]


def generated_record(
    document: AssembledDocument,
    generated: dict[str, bytes],
) -> dict[str, str]:
    """Filename -> description for every manifest entry with an AI payload."""
    return {
        image.filename: image.description
        for image in document.images
        if generated.get(image.filename)
    }


def project_files(
    document: AssembledDocument,
    generated: Optional[dict[str, bytes]] = None,
) -> dict[str, bytes]:
    """Map relative output paths to file contents.

    Args:
        document: Assembled LaTeX and manifest.
        generated: AI image payloads keyed by filename; the rest get placeholders.

    Returns:
        Dict of ``relative/path -> bytes``.
    """
    generated = generated or {}
    files = {
        TEX_FILENAME: document.latex.encode("utf-8"),
        README_FILENAME: README_CONTENT.encode("utf-8"),
    }
    for image in document.images:
        files[f"{IMAGES_DIRNAME}/{image.filename}"] = image_payload(image, generated)

    record = generated_record(document, generated)
    if record:
        files[GENERATED_RECORD] = yaml.dump(
            record, default_flow_style=False, sort_keys=False, allow_unicode=True
        ).encode("utf-8")
    return files


def write_project(
    document: AssembledDocument,
    out_dir: Path,
    generated: Optional[dict[str, bytes]] = None,
) -> list[Path]:
    """Write the project files under *out_dir*.

    A record left by an earlier build is removed when no image in this build
    came from the AI service.

    Returns:
        Paths written.
    """
    files = project_files(document, generated)
    written = []
    for rel_path, content in files.items():
        target = out_dir / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        written.append(target)
    if GENERATED_RECORD not in files:
        (out_dir / GENERATED_RECORD).unlink(missing_ok=True)
    logger.info("Wrote %d file(s) to %s", len(written), out_dir)
    return written


def write_zip(
    document: AssembledDocument,
    zip_path: Path,
    generated: Optional[dict[str, bytes]] = None,
) -> Path:
    """Bundle the project files into a zip archive at *zip_path*."""
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for rel_path, content in project_files(document, generated).items():
            archive.writestr(rel_path, content)
    logger.info("Wrote project archive %s", zip_path)
    return zip_path


def load_generated(out_dir: Path, images: list[ImageDescriptor]) -> dict[str, bytes]:
    """Read back AI images an earlier build wrote under *out_dir*.

    An image is reused only if the record lists it with the same description
    the current manifest gives it and its file is still there.

    Args:
        out_dir: Output directory of the earlier build.
        images: Manifest of the current build.

    Returns:
        Payloads keyed by filename, suitable as ``existing`` for the resolver.

    Raises:
        ConfigError: If the record file is not a YAML mapping.
    """
    record_path = out_dir / GENERATED_RECORD
    if not record_path.exists():
        return {}
    try:
        record = yaml.safe_load(record_path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid image record {record_path}: {exc}") from exc
    if not isinstance(record, dict):
        raise ConfigError(f"Image record {record_path} must contain a mapping")

    reused = {}
    for image in images:
        path = out_dir / IMAGES_DIRNAME / image.filename
        if record.get(image.filename) == image.description and path.exists():
            reused[image.filename] = path.read_bytes()
    logger.info("Reusing %d previously generated image(s) from %s", len(reused), out_dir)
    return reused
