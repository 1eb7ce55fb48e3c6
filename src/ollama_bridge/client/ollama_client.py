"""Synchronous httpx client for the Ollama ``/api/tags`` and ``/api/generate`` endpoints.

Every call opens its own ``httpx.Client`` and returns either the payload of
interest or a :class:`ClientError` value. No httpx or JSON exception escapes.
Each call has an overall deadline covering connect, headers and body; the
call fails with ``TRANSPORT`` once it passes, however the server paces it.
"""
from __future__ import annotations
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from ollama_bridge.common.sanitize import DEFAULT_OPTIONS, merge_options
from ollama_bridge.common.schema import (
    ClientError,
    ClientErrorKind,
    GenerationRequest,
    ModelInfo,
    ServerConfig,
)

LOGGER = logging.getLogger("ollama_bridge.client")

DISCOVERY_TIMEOUT_SECONDS = 10.0
DISCOVERY_CONNECT_TIMEOUT = 5.0
HEALTH_TIMEOUT_SECONDS = 5.0
HEALTH_CONNECT_TIMEOUT = 3.0
GENERATE_CONNECT_TIMEOUT = 15.0

_HEADERS = {"Content-Type": "application/json"}


@dataclass
class _RawResponse:
    status_code: int
    content_type: str
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body)


def _endpoint(config: ServerConfig, path: str) -> str:
    return config.api_host.rstrip("/") + path


def _timeout(total: float, connect: float) -> httpx.Timeout:
    """Per-phase httpx timeouts; the connect phase never outlasts the overall deadline."""
    return httpx.Timeout(total, connect=min(connect, total))


def _read_response(
    method: str,
    url: str,
    deadline: float,
    timeout: httpx.Timeout,
    verify: bool,
    payload: Optional[dict[str, Any]],
) -> _RawResponse:
    with httpx.Client(timeout=timeout, verify=verify) as client:
        with client.stream(method, url, headers=_HEADERS, json=payload) as r:
            chunks: list[bytes] = []
            for chunk in r.iter_bytes():
                if time.monotonic() > deadline:
                    raise httpx.ReadTimeout("response body exceeded the deadline", request=r.request)
                chunks.append(chunk)
            return _RawResponse(
                status_code=r.status_code,
                content_type=r.headers.get("content-type", ""),
                body=b"".join(chunks),
            )


def _send(
    method: str,
    url: str,
    total: float,
    connect: float,
    verify: bool,
    payload: Optional[dict[str, Any]] = None,
) -> _RawResponse:
    """
    Issue one request and read the whole body before ``total`` seconds elapse.

    The exchange runs on a daemon thread so a server that trickles its status
    line, headers or body cannot hold the caller past the deadline.

    Raises:
        httpx.HTTPError: On transport failures, including the overall deadline.
    """
    deadline = time.monotonic() + total
    outcome: dict[str, Any] = {}

    def _worker() -> None:
        try:
            outcome["response"] = _read_response(method, url, deadline, _timeout(total, connect), verify, payload)
        except Exception as e:  # re-raised on the calling thread
            outcome["error"] = e

    worker = threading.Thread(target=_worker, name="ollama-request", daemon=True)
    worker.start()
    worker.join(total)
    if worker.is_alive():
        raise httpx.ReadTimeout(f"no complete response from {url} within {total:g}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["response"]


def _get_json(url: str, total: float, connect: float, verify: bool) -> Union[Any, ClientError]:
    """GET ``url`` and decode the body; non-200 status codes are not failures here."""
    try:
        r = _send("GET", url, total, connect, verify)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        LOGGER.warning("Ollama request to %s failed: %s: %s", url, type(e).__name__, e)
        return ClientError(ClientErrorKind.TRANSPORT, str(e))

    if r.status_code != 200:
        LOGGER.warning("Ollama %s answered HTTP %s", url, r.status_code)
    try:
        return r.json()
    except ValueError as e:
        LOGGER.warning("Invalid JSON from %s: %s", url, e)
        return ClientError(ClientErrorKind.INVALID_RESPONSE, "body is not JSON")


def list_models(config: ServerConfig) -> Union[list[ModelInfo], ClientError]:
    """
    Fetch the models installed on the server.

    Args:
        config: Resolved server config; ``discovery_verify_ssl`` controls TLS checks.

    Returns:
        Parsed models (empty when the body has no ``models`` field) or a ClientError.
    """
    url = _endpoint(config, "/api/tags")
    data = _get_json(url, DISCOVERY_TIMEOUT_SECONDS, DISCOVERY_CONNECT_TIMEOUT, config.discovery_verify_ssl)
    if isinstance(data, ClientError):
        return data

    if not isinstance(data, dict):
        return ClientError(ClientErrorKind.INVALID_RESPONSE, "body is not a JSON object")
    entries = data.get("models")
    if entries is None:
        return []
    if not isinstance(entries, list):
        return ClientError(ClientErrorKind.INVALID_RESPONSE, "'models' is not a list")

    models: list[ModelInfo] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name:
            LOGGER.debug("Skipping model entry without name: %r", entry)
            continue
        size = entry.get("size")
        modified = entry.get("modified_at")
        models.append(
            ModelInfo(
                name=name,
                size_bytes=size if isinstance(size, (int, float)) and not isinstance(size, bool) else None,
                modified_at=modified if isinstance(modified, str) else None,
            )
        )
    return models


def check_health(config: ServerConfig) -> Union[bool, ClientError]:
    """Return True when ``/api/tags`` answers with a JSON object carrying ``models``."""
    data = _get_json(
        _endpoint(config, "/api/tags"), HEALTH_TIMEOUT_SECONDS, HEALTH_CONNECT_TIMEOUT, config.discovery_verify_ssl
    )
    if isinstance(data, ClientError):
        return data
    return isinstance(data, dict) and "models" in data


def build_payload(request: GenerationRequest) -> dict[str, Any]:
    return {
        "model": request.model,
        "prompt": request.prompt,
        "stream": False,
        "options": merge_options(DEFAULT_OPTIONS, request.options),
    }


def _log_diagnostics(
    url: str,
    response: Optional[_RawResponse],
    error: Optional[Exception],
) -> None:
    info = {
        "endpoint": url,
        "http_code": response.status_code if response is not None else 0,
        "content_type": response.content_type if response is not None else "",
        "error": str(error) if error is not None else "",
        "error_code": type(error).__name__ if error is not None else "",
        "response": response.text if response is not None else "",
    }
    LOGGER.debug("Ollama API request: %s", info)


def generate(config: ServerConfig, request: GenerationRequest) -> Union[str, ClientError]:
    """
    Submit one non-streaming completion to ``/api/generate``.

    Failures are checked in order: transport, HTTP 429, other non-200 status,
    then body problems (non-JSON, ``error`` field, missing ``response``).

    Args:
        config: Resolved server config; ``verify_ssl`` and ``timeout_seconds`` apply.
        request: Sanitized model, prompt and caller options.
    """
    url = _endpoint(config, "/api/generate")
    payload = build_payload(request)

    try:
        r = _send(
            "POST",
            url,
            float(config.timeout_seconds),
            GENERATE_CONNECT_TIMEOUT,
            config.verify_ssl,
            payload,
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        _log_diagnostics(url, None, e)
        LOGGER.error("Ollama request failed: %s: %s", type(e).__name__, e)
        return ClientError(ClientErrorKind.TRANSPORT, str(e))

    _log_diagnostics(url, r, None)

    if r.status_code == 429:
        LOGGER.warning("Ollama rate limit hit for model %s", request.model)
        return ClientError(ClientErrorKind.RATE_LIMITED, "429")
    if r.status_code != 200:
        LOGGER.error("Ollama HTTP error %s - Response: %s", r.status_code, r.text)
        return ClientError(ClientErrorKind.HTTP_ERROR, str(r.status_code))

    try:
        data = r.json()
    except ValueError as e:
        LOGGER.error("Invalid JSON response: %s", e)
        return ClientError(ClientErrorKind.INVALID_RESPONSE, "body is not JSON")

    if not isinstance(data, dict):
        return ClientError(ClientErrorKind.INVALID_RESPONSE, "body is not a JSON object")
    if "error" in data:
        LOGGER.error("Ollama API error: %s", data["error"])
        return ClientError(ClientErrorKind.INVALID_RESPONSE, str(data["error"]))
    text = data.get("response")
    if not isinstance(text, str):
        return ClientError(ClientErrorKind.INVALID_RESPONSE, "missing 'response' field")
    return text
