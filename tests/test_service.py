from __future__ import annotations

import json

import httpx
import respx

from ollama_bridge.client import service
from ollama_bridge.common.schema import (
    ClientError,
    ClientErrorKind,
    ConfigError,
    ConfigErrorKind,
    ModelInfo,
    ServerConfig,
    ValidationError,
    ValidationErrorKind,
)

from tests.conftest import GENERATE_URL, TAGS_URL


def test_get_config_resolves_and_validates(settings: dict) -> None:
    config = service.get_config(settings)
    assert isinstance(config, ServerConfig)
    assert config.api_host == "http://127.0.0.1:11434"
    assert config.timeout_seconds == 30


def test_get_config_invalid_host(settings: dict) -> None:
    settings["apihost"] = "localhost:11434"
    result = service.get_config(settings)
    assert isinstance(result, ConfigError)
    assert result.kind is ConfigErrorKind.INVALID_HOST
    assert result.detail == "127.0.0.1:11434"


def test_is_configured(settings: dict) -> None:
    assert service.is_configured(settings) is True
    assert service.is_configured({"apihost": ""}) is False
    assert service.is_configured({"apihost": "gopher://x"}) is False


@respx.mock
def test_list_models(settings: dict) -> None:
    respx.get(TAGS_URL).mock(return_value=httpx.Response(200, json={"models": [{"name": "phi:latest"}]}))
    assert service.list_models(settings) == [ModelInfo(name="phi:latest")]


def test_list_models_not_configured() -> None:
    result = service.list_models({"apihost": None})
    assert isinstance(result, ConfigError)
    assert result.kind is ConfigErrorKind.NOT_CONFIGURED


@respx.mock
def test_generate_text_sanitizes_inputs(settings: dict) -> None:
    route = respx.post(GENERATE_URL).mock(return_value=httpx.Response(200, json={"response": "42"}))
    result = service.generate_text("phi:latest; drop", "  meaning of life?  ", {"num_predict": 20}, settings=settings)
    assert result == "42"
    sent = json.loads(route.calls.last.request.content)
    assert sent["model"] == "phi:latestdrop"
    assert sent["prompt"] == "meaning of life?"
    assert sent["options"] == {"temperature": 0.7, "top_p": 0.9, "num_predict": 20}


@respx.mock(assert_all_called=False)
def test_generate_text_validation_happens_before_network(settings: dict) -> None:
    route = respx.post(GENERATE_URL).mock(return_value=httpx.Response(200, json={"response": "x"}))

    bad_model = service.generate_text("***", "hello", settings=settings)
    assert isinstance(bad_model, ValidationError)
    assert bad_model.kind is ValidationErrorKind.INVALID_MODEL

    empty_prompt = service.generate_text("phi", "   ", settings=settings)
    assert isinstance(empty_prompt, ValidationError)
    assert empty_prompt.kind is ValidationErrorKind.EMPTY_PROMPT

    assert not route.called


def test_generate_text_config_error_first() -> None:
    result = service.generate_text("***", "", settings={"apihost": ""})
    assert isinstance(result, ConfigError)
    assert result.kind is ConfigErrorKind.NOT_CONFIGURED


@respx.mock
def test_generate_text_client_error_passthrough(settings: dict) -> None:
    respx.post(GENERATE_URL).mock(return_value=httpx.Response(429))
    result = service.generate_text("phi", "hello", settings=settings)
    assert isinstance(result, ClientError)
    assert result.kind is ClientErrorKind.RATE_LIMITED


@respx.mock
def test_check_health(settings: dict) -> None:
    respx.get(TAGS_URL).mock(return_value=httpx.Response(200, json={"models": []}))
    assert service.check_health(settings) is True


@respx.mock
def test_check_health_false_on_failures(settings: dict) -> None:
    respx.get(TAGS_URL).mock(side_effect=httpx.ConnectError("refused"))
    assert service.check_health(settings) is False
    assert service.check_health({"apihost": ""}) is False
