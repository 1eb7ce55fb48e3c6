"""FastAPI front end for a local Ollama server.

Endpoints:
- GET /health
- GET /status
- GET /models
- POST /generate  { "prompt": "...", "model": "...", "options": {...} }
"""
from __future__ import annotations
import logging
from typing import Any, NoReturn, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from ollama_bridge.client import ollama_client, service
from ollama_bridge.common.logging_setup import setup_logging
from ollama_bridge.common.sanitize import select_model
from ollama_bridge.common.schema import (
    ClientError,
    ClientErrorKind,
    ConfigError,
    Failure,
    GenerationResult,
    ValidationError,
)
from ollama_bridge.common.settings import load_settings
from ollama_bridge.web import presentation

LOGGER = logging.getLogger("ollama_bridge.web.app")
setup_logging(load_settings().get("loglevel", "INFO"))


class GenerateIn(BaseModel):
    prompt: str
    model: Optional[str] = None
    options: dict[str, Any] = Field(default_factory=dict)


class GenerateOut(BaseModel):
    model: str
    text: str


class ModelOut(BaseModel):
    name: str
    size_bytes: Optional[float] = None
    modified_at: Optional[str] = None


class ModelsOut(BaseModel):
    models: list[ModelOut]
    options: dict[str, str]


class StatusCardOut(BaseModel):
    title: str
    value: str
    icon: str


class StatusOut(BaseModel):
    connected: bool
    message: str
    cards: list[StatusCardOut]
    models: list[str]
    notice: str


app = FastAPI(title="Ollama bridge")


def get_settings() -> dict[str, Any]:
    """Settings are re-read per request so config edits apply without a restart."""
    return load_settings()


def _status_code_for(failure: Failure) -> int:
    if isinstance(failure, ValidationError):
        return 422
    if isinstance(failure, ConfigError):
        return 503
    if failure.kind is ClientErrorKind.RATE_LIMITED:
        return 429
    return 502


def _raise_for(failure: Failure) -> NoReturn:
    raise HTTPException(status_code=_status_code_for(failure), detail=presentation.message_for(failure))


@app.get("/health")
def health(settings: dict[str, Any] = Depends(get_settings)) -> dict[str, str]:
    ok = service.check_health(settings)
    return {"status": "ok" if ok else "unavailable", "api_host": str(settings.get("apihost") or "")}


@app.get("/status", response_model=StatusOut)
def status(settings: dict[str, Any] = Depends(get_settings)) -> StatusOut:
    config = service.get_config(settings)
    if isinstance(config, ConfigError):
        health_result: Any = False
        models: Any = config
        api_host = str(settings.get("apihost") or "") or None
    else:
        health_result = ollama_client.check_health(config)
        models = ollama_client.list_models(config)
        api_host = config.api_host

    conn = presentation.connection_status(config, health_result)
    cards = presentation.status_cards(api_host, conn, models)
    names = [] if isinstance(models, Failure) else [m.name for m in models]
    notice = presentation.MESSAGES["modelslow" if conn.success else "configurationrequired"]
    return StatusOut(
        connected=conn.success,
        message=conn.message,
        cards=[StatusCardOut(title=c.title, value=c.value, icon=c.icon) for c in cards],
        models=names,
        notice=notice,
    )


@app.get("/models", response_model=ModelsOut)
def models(settings: dict[str, Any] = Depends(get_settings)) -> ModelsOut:
    result = service.list_models(settings)
    if isinstance(result, Failure):
        LOGGER.warning("Model discovery failed: %s (%s)", result.kind.value, result.detail)
        _raise_for(result)
    return ModelsOut(
        models=[ModelOut(name=m.name, size_bytes=m.size_bytes, modified_at=m.modified_at) for m in result],
        options=presentation.model_options(result),
    )


@app.post("/generate", response_model=GenerateOut)
def generate(body: GenerateIn, settings: dict[str, Any] = Depends(get_settings)) -> GenerateOut:
    config = service.get_config(settings)
    if isinstance(config, ConfigError):
        _raise_for(config)

    model = select_model(body.model, config.default_model)
    if isinstance(model, ValidationError):
        _raise_for(model)

    outcome = service.generate_text(model, body.prompt, body.options, settings=settings)
    result = GenerationResult.from_outcome(model, outcome)
    if result.error is not None:
        if isinstance(result.error, ClientError):
            LOGGER.error("Generation failed: %s (%s)", result.error.kind.value, result.error.detail)
        raise HTTPException(
            status_code=_status_code_for(result.error),
            detail=presentation.render_result(result, config.api_host),
        )
    return GenerateOut(model=result.model, text=result.text or "")
