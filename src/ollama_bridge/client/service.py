"""Caller-facing operations: resolve config, validate input, call the server."""
from __future__ import annotations
import logging
from dataclasses import replace
from typing import Any, Mapping, Optional, Union

from ollama_bridge.client import ollama_client
from ollama_bridge.common.sanitize import sanitize_model, sanitize_prompt
from ollama_bridge.common.schema import (
    ClientError,
    ConfigError,
    Failure,
    GenerationRequest,
    ModelInfo,
    ServerConfig,
)
from ollama_bridge.common.settings import resolve_config, validate_host

LOGGER = logging.getLogger("ollama_bridge.service")

Settings = Optional[Mapping[str, Any]]


def get_config(settings: Settings = None) -> Union[ServerConfig, ConfigError]:
    """Resolve settings into a config whose ``api_host`` has passed validation."""
    config = resolve_config(settings)
    if isinstance(config, ConfigError):
        return config
    host = validate_host(config.api_host)
    if isinstance(host, ConfigError):
        return host
    return replace(config, api_host=host)


def is_configured(settings: Settings = None) -> bool:
    return not isinstance(get_config(settings), ConfigError)


def list_models(settings: Settings = None) -> Union[list[ModelInfo], ConfigError, ClientError]:
    config = get_config(settings)
    if isinstance(config, ConfigError):
        return config
    return ollama_client.list_models(config)


def generate_text(
    model: Optional[str],
    prompt: Optional[str],
    options: Optional[Mapping[str, Any]] = None,
    settings: Settings = None,
) -> Union[str, Failure]:
    """
    Sanitize the inputs and run one generation call.

    The model is not replaced by the configured default here; callers that
    want fallback use :func:`ollama_bridge.common.sanitize.select_model` first.

    Args:
        model: Raw model name.
        prompt: Raw prompt text.
        options: Generation options merged over the defaults.
        settings: Settings mapping, loaded from file/environment when omitted.
    """
    config = get_config(settings)
    if isinstance(config, ConfigError):
        LOGGER.warning("Generation refused: %s", config.kind.value)
        return config

    clean_model = sanitize_model(model)
    if isinstance(clean_model, Failure):
        return clean_model
    clean_prompt = sanitize_prompt(prompt)
    if isinstance(clean_prompt, Failure):
        return clean_prompt

    request = GenerationRequest(model=clean_model, prompt=clean_prompt, options=dict(options or {}))
    LOGGER.info("Generating with model %s (%d prompt chars)", clean_model, len(clean_prompt))
    return ollama_client.generate(config, request)


def check_health(settings: Settings = None) -> bool:
    config = get_config(settings)
    if isinstance(config, ConfigError):
        return False
    return ollama_client.check_health(config) is True
