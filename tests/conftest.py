from __future__ import annotations

import pytest

from ollama_bridge.common.schema import ServerConfig

API_HOST = "http://127.0.0.1:11434"
TAGS_URL = f"{API_HOST}/api/tags"
GENERATE_URL = f"{API_HOST}/api/generate"

TAGS_RESPONSE = {
    "models": [
        {"name": "phi:latest", "size": 1602463378, "modified_at": "2024-05-01T10:00:00Z"},
        {"name": "mistral:7b", "size": 4109865159, "modified_at": "2024-05-02T11:30:00Z"},
    ]
}


@pytest.fixture
def server_config() -> ServerConfig:
    return ServerConfig(api_host=API_HOST, timeout_seconds=30)


@pytest.fixture
def settings() -> dict:
    return {
        "apihost": "http://localhost:11434",
        "defaultmodel": "phi:latest",
        "timeout": 30,
        "verifyssl": True,
        "discoveryverifyssl": False,
    }
