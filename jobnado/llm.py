"""Structured (JSON-schema) and free-text generation over an OpenAI-compatible API.

Defaults to Gemini's OpenAI-compatible endpoint; any provider that accepts
``response_format={"type": "json_schema"}`` works.
"""
from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Any, Sequence, Union

from jobnado.log import get_logger
from jobnado.models import SchemaViolation

log = get_logger(__name__)

__all__ = [
    "EmptyResponse", "SchemaViolation", "InlineData", "StructuredGenerationClient",
    "check_shape",
]

_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "object": (dict,),
    "array": (list,),
    "string": (str,),
    "number": (int, float),
    "integer": (int,),
    "boolean": (bool,),
}


class EmptyResponse(RuntimeError):
    """The model returned no text."""


@dataclass
class InlineData:
    """A binary prompt attachment, e.g. a scanned CV page."""

    mime_type: str
    data: bytes

    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


PromptPart = Union[str, InlineData]


def check_shape(value: Any, schema: dict[str, Any], path: str = "$") -> None:
    """Raise SchemaViolation if *value* misses the schema's type or required keys.

    Only ``type``, ``properties``, ``required`` and ``items`` are checked;
    that is all the prompts in this package use.
    """
    expected = schema.get("type")
    if expected:
        allowed = _JSON_TYPES.get(expected, (object,))
        if isinstance(value, bool) and expected in ("number", "integer"):
            raise SchemaViolation(f"{path}: expected {expected}, got boolean")
        if expected == "integer" and isinstance(value, float) and value.is_integer():
            return
        if not isinstance(value, allowed):
            raise SchemaViolation(f"{path}: expected {expected}, got {type(value).__name__}")

    if isinstance(value, dict):
        for key in schema.get("required", []):
            if key not in value:
                raise SchemaViolation(f"{path}: missing required field {key!r}")
        for key, sub in schema.get("properties", {}).items():
            if key in value and value[key] is not None:
                check_shape(value[key], sub, f"{path}.{key}")
    elif isinstance(value, list) and "items" in schema:
        for i, item in enumerate(value):
            check_shape(item, schema["items"], f"{path}[{i}]")


def _strip_fences(raw: str) -> str:
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


class StructuredGenerationClient:
    """Single request/response LLM calls; retries belong to the caller."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        *,
        client: Any = None,
        max_tokens: int = 4096,
    ) -> None:
        if client is None:
            from openai import OpenAI

            client = OpenAI(api_key=api_key, base_url=base_url)
        self._client = client
        self.model = model
        self.max_tokens = max_tokens

    # ── request building ────────────────────────────────────────────────

    @staticmethod
    def _content(parts: Sequence[PromptPart]) -> list[dict[str, Any]]:
        content: list[dict[str, Any]] = []
        attachments = 0
        for part in parts:
            if isinstance(part, InlineData):
                attachments += 1
                if attachments > 1:
                    raise ValueError("only one inline attachment is supported per request")
                content.append({"type": "image_url", "image_url": {"url": part.data_url()}})
            else:
                content.append({"type": "text", "text": str(part)})
        return content

    def _create(self, messages: list[dict[str, Any]], **extra: Any) -> str:
        resp = self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=self.max_tokens,
            **extra,
        )
        choices = getattr(resp, "choices", None) or []
        text = (choices[0].message.content or "") if choices else ""
        if not text.strip():
            raise EmptyResponse(f"{self.model} returned no text")
        return text

    # ── public API ──────────────────────────────────────────────────────

    def generate(
        self,
        parts: Sequence[PromptPart],
        schema: dict[str, Any],
        *,
        name: str = "response",
    ) -> Any:
        """Send *parts* and return the JSON value decoded against *schema*."""
        raw = self._create(
            [{"role": "user", "content": self._content(parts)}],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": name, "schema": schema},
            },
        )
        try:
            value = json.loads(_strip_fences(raw))
        except json.JSONDecodeError as exc:
            raise SchemaViolation(f"model output is not valid JSON: {exc}") from exc
        check_shape(value, schema)
        log.debug("Structured %s response decoded (%d chars)", name, len(raw))
        return value

    def complete(self, prompt: str) -> str:
        """Plain free-text completion."""
        return self._create([{"role": "user", "content": prompt}]).strip()

    def chat(self, history: Sequence[dict[str, str]], message: str, system: str = "") -> str:
        """Multi-turn completion; *history* items are ``{"role", "text"}``
        with roles ``user`` or ``model``."""
        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        for turn in history:
            role = "assistant" if turn.get("role") == "model" else "user"
            messages.append({"role": role, "content": turn.get("text", "")})
        messages.append({"role": "user", "content": message})
        return self._create(messages).strip()
