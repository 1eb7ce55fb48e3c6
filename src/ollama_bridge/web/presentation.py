"""Maps client results onto user-facing strings, dropdown options and status cards.

Only catalogue messages reach the user. Raw transport or parser text stays in
the logs; the sole interpolated detail is the rejected API host.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from ollama_bridge.common.schema import (
    ClientError,
    ClientErrorKind,
    ConfigError,
    ConfigErrorKind,
    ErrorKind,
    Failure,
    GenerationResult,
    ModelInfo,
    ServerConfig,
    ValidationErrorKind,
)

MESSAGES: dict[str, str] = {
    "apinotconfigured": "Ollama API host is not configured. Please contact your site administrator.",
    "invalidapihost": "Invalid API host URL: {host}. Please check your Ollama API host configuration.",
    "invalidmodel": "Invalid model name. Please provide a valid model name.",
    "emptyprompt": "Empty prompt provided. Please enter a prompt to generate a response.",
    "apirequestfailed": "Failed to connect to Ollama API. Please check your server configuration and try again.",
    "invalidresponse": "Received an invalid response from Ollama API. Please try again.",
    "ratelimitexceeded": "Rate limit exceeded. Please wait before making another request.",
    "noavailablemodels": "No models available. Please check your Ollama server.",
    "connectionfailed": "Failed to connect to Ollama server",
    "connectionok": "Successfully connected to Ollama server",
    "apihostinvalid": "Invalid API host URL",
    "errorprocessingrequest": "Error processing request. Please check your Ollama server configuration.",
    "modelslow": (
        "Tip: First request may take 1-2 minutes as the model loads into memory. "
        "Subsequent requests will be faster!"
    ),
    "configurationrequired": "Configuration Required. Please configure the Ollama API host.",
}

ERROR_MESSAGE_KEYS: dict[ErrorKind, str] = {
    ConfigErrorKind.NOT_CONFIGURED: "apinotconfigured",
    ConfigErrorKind.INVALID_HOST: "invalidapihost",
    ValidationErrorKind.INVALID_MODEL: "invalidmodel",
    ValidationErrorKind.EMPTY_PROMPT: "emptyprompt",
    ClientErrorKind.TRANSPORT: "apirequestfailed",
    ClientErrorKind.HTTP_ERROR: "apirequestfailed",
    ClientErrorKind.RATE_LIMITED: "ratelimitexceeded",
    ClientErrorKind.INVALID_RESPONSE: "invalidresponse",
}


def message_for(failure: Failure) -> str:
    """Return the one user-facing message for ``failure``."""
    text = MESSAGES[ERROR_MESSAGE_KEYS[failure.kind]]
    if failure.kind is ConfigErrorKind.INVALID_HOST:
        return text.format(host=failure.detail)
    return text


def model_options(models: Union[Sequence[ModelInfo], Failure]) -> dict[str, str]:
    """
    Build ``{value: label}`` options for a model dropdown.

    Args:
        models: Discovery result. Failures are treated like an empty list.
    """
    options: dict[str, str] = {}
    if not isinstance(models, Failure):
        for model in models:
            if model.name:
                options[model.name] = model.name
    if not options:
        options[""] = MESSAGES["noavailablemodels"]
    return options


@dataclass(frozen=True)
class ConnectionStatus:
    success: bool
    message: str


@dataclass(frozen=True)
class StatusCard:
    title: str
    value: str
    icon: str


def connection_status(
    config: Union[ServerConfig, ConfigError],
    health: Union[bool, ClientError],
) -> ConnectionStatus:
    """
    Summarise configuration and health check into one status line.

    Args:
        config: Result of resolving and validating the config.
        health: Result of the health check; ignored when ``config`` failed.
    """
    if isinstance(config, ConfigError):
        return ConnectionStatus(False, MESSAGES["apihostinvalid"])
    if isinstance(health, ClientError):
        if health.kind is ClientErrorKind.TRANSPORT:
            return ConnectionStatus(False, MESSAGES["connectionfailed"])
        return ConnectionStatus(False, MESSAGES["errorprocessingrequest"])
    return ConnectionStatus(True, MESSAGES["connectionok"])


def model_count_label(count: int) -> str:
    return f"{count} Model" + ("" if count == 1 else "s")


def status_cards(
    api_host: Optional[str],
    status: ConnectionStatus,
    models: Union[Sequence[ModelInfo], Failure],
) -> list[StatusCard]:
    count = 0 if isinstance(models, Failure) else len(models)
    return [
        StatusCard(
            title="Connection Status",
            value="Connected" if status.success else "Disconnected",
            icon="✅" if status.success else "⚠️",
        ),
        StatusCard(title="Available Models", value=model_count_label(count), icon="📦"),
        StatusCard(title="API Host", value=api_host or "Not configured", icon="🌐"),
    ]


def troubleshooting_tips(model: str, api_host: Optional[str] = None) -> list[str]:
    host = (api_host or "http://127.0.0.1:11434").rstrip("/")
    return [
        "Check Ollama is running: ollama list",
        f"Verify the model exists: ollama pull {model}",
        f"Test API connection: curl {host}/api/tags",
        "Check Ollama logs for detailed error messages",
    ]


def render_result(result: GenerationResult, api_host: Optional[str] = None) -> dict[str, Any]:
    """Shape a generation outcome for display."""
    error = result.error
    if error is None:
        return {"ok": True, "model": result.model, "text": result.text}
    return {
        "ok": False,
        "model": result.model,
        "kind": error.kind.value,
        "message": message_for(error),
        "tips": troubleshooting_tips(result.model, api_host),
    }
