"""Best-effort title/description cleanup through an OpenAI-compatible chat API."""

from __future__ import annotations

import json
from dataclasses import replace
from typing import Any, Dict, Optional

import httpx

from .. import logging_manager as log_mgr
from ..config import PluginConfig
from ..constants import DEFAULT_AI_BASE_URL
from .types import UNCHANGED, Episode, MetadataResult, Refined, RefinementResult

logger = log_mgr.get_logger().getChild("metadata.refiner")

TEMPERATURE = 0.2
_TITLE_AND_DESCRIPTION_PROMPT = (
    "Normalize YouTube metadata. Return compact JSON with keys title and description."
)
_TITLE_ONLY_PROMPT = (
    "Normalize YouTube metadata title. Return compact JSON with keys title and description."
)


def build_endpoint(base_url: Optional[str]) -> str:
    sanitized = base_url.strip().rstrip("/") if base_url and base_url.strip() else DEFAULT_AI_BASE_URL
    return f"{sanitized}/chat/completions"


def build_request_payload(
    model: str, title: Optional[str], description: Optional[str], refine_description: bool
) -> Dict[str, Any]:
    system_prompt = _TITLE_AND_DESCRIPTION_PROMPT if refine_description else _TITLE_ONLY_PROMPT
    user_prompt = (
        f"Title:\n{title or ''}"
        f"\n\nDescription:\n{description or ''}"
        "\n\nReturn only JSON."
    )
    return {
        "model": model,
        "temperature": TEMPERATURE,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    }


def extract_json_object(text: str) -> str:
    """Return the text between the first ``{`` and the last ``}`` (models like prose and fences)."""

    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return ""
    return text[start : end + 1]


def _string_field(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def parse_refined_payload(response_content: str) -> Optional[Refined]:
    root = json.loads(response_content)
    choices = root.get("choices") if isinstance(root, dict) else None
    if not isinstance(choices, list) or not choices:
        return None
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str) or not content.strip():
        return None

    clean_json = extract_json_object(content)
    if not clean_json:
        return None
    parsed = json.loads(clean_json)
    if not isinstance(parsed, dict):
        return None

    title = _string_field(parsed, "title")
    description = _string_field(parsed, "description")
    if not title.strip() and not description.strip():
        return None
    return Refined(title=title, description=description)


class AiMetadataRefiner:
    """Never raises for refinement failures: they are logged and become ``UNCHANGED``."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, *, timeout: float = 30.0) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def refine(
        self, title: Optional[str], description: Optional[str], config: PluginConfig
    ) -> RefinementResult:
        """Ask the configured chat model for a cleaner title and description.

        Args:
            title: Current item name.
            description: Current overview.
            config: Plugin settings with the AI endpoint, key and model.

        Returns:
            ``Refined`` with the model's text, or ``UNCHANGED`` when cleanup is
            inactive or the request fails in any way.
        """
        if not config.ai_cleanup_active:
            return UNCHANGED

        try:
            response = await self._get_client().post(
                build_endpoint(config.ai_base_url),
                json=build_request_payload(
                    config.ai_model, title, description, config.enable_ai_description_cleanup
                ),
                headers={"Authorization": f"Bearer {config.ai_api_key}"},
            )
            if not response.is_success:
                logger.warning("AI cleanup failed with status code %s", response.status_code)
                return UNCHANGED

            result = parse_refined_payload(response.text)
            if result is None:
                logger.warning("AI cleanup returned no usable content")
                return UNCHANGED
            return result
        except Exception as exc:
            logger.warning("AI cleanup failed unexpectedly: %s", exc, exc_info=True)
            return UNCHANGED

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AiMetadataRefiner":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()


def apply_refinement(
    result: MetadataResult, refinement: RefinementResult, config: PluginConfig
) -> MetadataResult:
    """Return a copy of ``result`` carrying the refined title and, if enabled, overview."""

    if not isinstance(refinement, Refined):
        return result

    updates: Dict[str, Any] = {}
    if refinement.title.strip():
        updates["name"] = refinement.title
        if isinstance(result.item, Episode):
            updates["forced_sort_name"] = f"{result.item.premiere_date:%Y%m%d}-{refinement.title}"
    if config.enable_ai_description_cleanup and refinement.description.strip():
        updates["overview"] = refinement.description
    if not updates:
        return result
    return replace(result, item=replace(result.item, **updates))


__all__ = [
    "AiMetadataRefiner",
    "apply_refinement",
    "build_endpoint",
    "build_request_payload",
    "extract_json_object",
    "parse_refined_payload",
]
