"""Input sanitization and generation option helpers."""
from __future__ import annotations
import re
from typing import Any, Mapping, Optional, Union

from ollama_bridge.common.schema import ValidationError, ValidationErrorKind

_MODEL_STRIP_RE = re.compile(r"[^A-Za-z0-9_.:\-]")

DEFAULT_OPTIONS: dict[str, Any] = {
    "temperature": 0.7,
    "top_p": 0.9,
}


def sanitize_model(raw: Optional[str]) -> Union[str, ValidationError]:
    """
    Drop every character outside ``[A-Za-z0-9_.:-]`` from a model name.

    Never substitutes a default; an empty result is rejected.
    """
    model = _MODEL_STRIP_RE.sub("", raw or "")
    if not model:
        return ValidationError(ValidationErrorKind.INVALID_MODEL)
    return model


def sanitize_prompt(raw: Optional[str]) -> Union[str, ValidationError]:
    prompt = (raw or "").strip()
    if not prompt:
        return ValidationError(ValidationErrorKind.EMPTY_PROMPT)
    return prompt


def select_model(raw: Optional[str], default_model: Optional[str]) -> Union[str, ValidationError]:
    """
    Sanitize the caller's model, falling back to the default once.

    Args:
        raw: Model requested by the caller.
        default_model: Configured default model.
    """
    model = sanitize_model(raw)
    if isinstance(model, ValidationError):
        return sanitize_model(default_model)
    return model


def merge_options(defaults: Mapping[str, Any], overrides: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Recursively merge generation options.

    Leaf values from ``overrides`` win, nested mappings merge key by key and
    two colliding lists are concatenated (defaults first). Inputs are not mutated.
    """
    merged: dict[str, Any] = {}
    for key, value in defaults.items():
        merged[key] = _copy(value)
    for key, value in (overrides or {}).items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_options(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            merged[key] = current + _copy(value)
        else:
            merged[key] = _copy(value)
    return merged


def _copy(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _copy(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_copy(v) for v in value]
    return value
