"""Client for the Gemini text and image generation endpoints.

Requests go through ``curl`` in a subprocess.  Every public function takes an
optional ``run_cmd`` override (``callable(cmd_list) -> CompletedProcess``) so
tests never touch the network.  Failures raise :class:`ServiceError`
subclasses; callers decide whether to abort or carry on.
"""

import base64
import json
import logging
import os
import subprocess
from typing import Any, Optional

from papergen.config import ai_disabled, load_settings
from papergen.errors import ImageGenerationError, ServiceError

logger = logging.getLogger(__name__)

API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"
API_KEY_ENV = "GOOGLE_API_KEY"


def _default_run_cmd(timeout: int):
    def run_cmd(cmd: list[str]) -> subprocess.CompletedProcess:
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )

    return run_cmd


def _post(model: str, payload: dict, *, run_cmd=None) -> dict[str, Any]:
    """POST *payload* to ``models/<model>:generateContent`` and parse the reply.

    Raises:
        ServiceError: On a disabled service, missing key, transport error,
            non-JSON reply or an API error object.
    """
    api_key = os.environ.get(API_KEY_ENV, "")
    if run_cmd is None:
        if ai_disabled():
            raise ServiceError("AI service disabled")
        if not api_key:
            raise ServiceError(f"{API_KEY_ENV} is not set")
        run_cmd = _default_run_cmd(int(load_settings().get("timeout", 120)))

    cmd = [
        "curl",
        "-s",
        "-X",
        "POST",
        f"{API_BASE}/{model}:generateContent",
        "-H",
        "Content-Type: application/json",
        "-H",
        f"x-goog-api-key: {api_key}",
        "-d",
        json.dumps(payload),
    ]
    logger.debug("Gemini request: model=%s", model)

    try:
        result = run_cmd(cmd)
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as exc:
        raise ServiceError(f"AI service unreachable: {exc}") from exc

    if result.returncode != 0:
        raise ServiceError(f"AI service request failed (exit {result.returncode})")
    try:
        data = json.loads(result.stdout)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ServiceError("AI service returned an unreadable response") from exc
    if not isinstance(data, dict):
        raise ServiceError("AI service returned an unexpected response")
    if "error" in data:
        message = data["error"].get("message", "") if isinstance(data["error"], dict) else data["error"]
        raise ServiceError(f"AI service error: {message}")
    return data


def _response_parts(data: dict) -> list[dict]:
    candidates = data.get("candidates") or []
    if not candidates:
        return []
    return (candidates[0].get("content") or {}).get("parts") or []


def generate_text(
    prompt: str,
    *,
    model: Optional[str] = None,
    use_search: bool = False,
    run_cmd=None,
) -> str:
    """Generate text for *prompt*.

    Args:
        prompt: The prompt text.
        model: Model name; defaults to the ``text_model`` setting.
        use_search: Enable Google Search grounding.
        run_cmd: Optional subprocess override for testing.

    Returns:
        The stripped response text.

    Raises:
        ServiceError: On any failure or an empty response.
    """
    model = model or load_settings()["text_model"]
    payload: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
    if use_search:
        payload["tools"] = [{"google_search": {}}]

    data = _post(model, payload, run_cmd=run_cmd)
    text = "".join(part.get("text", "") for part in _response_parts(data)).strip()
    if not text:
        raise ServiceError("AI service returned no text")
    return text


def generate_image(prompt: str, *, model: Optional[str] = None, run_cmd=None) -> bytes:
    """Generate an image for *prompt* and return the decoded bytes.

    Raises:
        ImageGenerationError: If the request fails or carries no image data.
    """
    model = model or load_settings()["image_model"]
    payload = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {"responseModalities": ["IMAGE"]},
    }
    try:
        data = _post(model, payload, run_cmd=run_cmd)
    except ServiceError as exc:
        raise ImageGenerationError(f"image generation failed: {exc}") from exc

    for part in _response_parts(data):
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and inline.get("data"):
            try:
                return base64.b64decode(inline["data"])
            except ValueError as exc:
                raise ImageGenerationError("image generation failed: bad image data") from exc
    raise ImageGenerationError("image generation failed: no image data in response")


# ---------------------------------------------------------------------------
# JSON replies
# ---------------------------------------------------------------------------


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```` ```json ... ``` ```` fence if present."""
    text = text.strip()
    if "```" in text:
        for part in text.split("```"):
            cleaned = part.strip().removeprefix("json").strip()
            if cleaned.startswith("{") or cleaned.startswith("["):
                return cleaned
    return text


def parse_json_response(text: str) -> Any:
    """Parse a model reply as JSON, tolerating markdown fences.

    Raises:
        ValueError: If the text is not valid JSON.
    """
    return json.loads(strip_code_fences(text))
