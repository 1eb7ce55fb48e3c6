"""Dataclasses for configuration, request/response types and error values."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Union


class ConfigErrorKind(str, Enum):
    NOT_CONFIGURED = "not_configured"
    INVALID_HOST = "invalid_host"


class ValidationErrorKind(str, Enum):
    INVALID_MODEL = "invalid_model"
    EMPTY_PROMPT = "empty_prompt"


class ClientErrorKind(str, Enum):
    TRANSPORT = "transport"
    HTTP_ERROR = "http_error"
    RATE_LIMITED = "rate_limited"
    INVALID_RESPONSE = "invalid_response"


ErrorKind = Union[ConfigErrorKind, ValidationErrorKind, ClientErrorKind]


@dataclass(frozen=True)
class Failure:
    """
    Base for error values returned (never raised) by the bridge.

    Args:
        kind: Error kind of the concrete family.
        detail: Diagnostic detail. Only ``INVALID_HOST`` details are safe to show.
    """
    kind: ErrorKind
    detail: str = ""

    kind_type: ClassVar[type] = Enum

    def __post_init__(self) -> None:
        if not isinstance(self.kind, self.kind_type):
            raise TypeError(
                f"{type(self).__name__} does not accept kind {self.kind!r}"
            )


@dataclass(frozen=True)
class ConfigError(Failure):
    """Server configuration is missing or unusable."""
    kind_type: ClassVar[type] = ConfigErrorKind


@dataclass(frozen=True)
class ValidationError(Failure):
    """Caller input was rejected before any network call."""
    kind_type: ClassVar[type] = ValidationErrorKind


@dataclass(frozen=True)
class ClientError(Failure):
    """The HTTP call failed or the server answered with something unusable."""
    kind_type: ClassVar[type] = ClientErrorKind


@dataclass(frozen=True)
class ServerConfig:
    """Resolved connection settings for one Ollama server."""
    api_host: str
    default_model: str = "phi:latest"
    timeout_seconds: int = 180
    verify_ssl: bool = True
    discovery_verify_ssl: bool = False


@dataclass(frozen=True)
class ModelInfo:
    """Model entry parsed from ``/api/tags``."""
    name: str
    size_bytes: Optional[float] = None
    modified_at: Optional[str] = None


@dataclass
class GenerationRequest:
    model: str
    prompt: str
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class GenerationResult:
    """Outcome of one generation call as handed to the presentation layer."""
    model: str
    text: Optional[str] = None
    error: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_outcome(cls, model: str, outcome: Union[str, Failure]) -> "GenerationResult":
        if isinstance(outcome, Failure):
            return cls(model=model, error=outcome)
        return cls(model=model, text=outcome)
