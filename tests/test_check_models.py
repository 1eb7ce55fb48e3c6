from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import respx

from ollama_bridge.tools import check_models

from tests.conftest import TAGS_RESPONSE, TAGS_URL


@pytest.fixture
def cfg_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(check_models, "setup_logging", lambda level: None)
    for key in ("APIHOST", "DEFAULTMODEL", "TIMEOUT", "VERIFYSSL", "DISCOVERYVERIFYSSL", "CONFIG"):
        monkeypatch.delenv(f"OLLAMA_BRIDGE_{key}", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text("apihost: http://localhost:11434\n", encoding="utf-8")
    return str(path)


@respx.mock
def test_prints_models_and_options(cfg_path: str, capsys: pytest.CaptureFixture[str]) -> None:
    respx.get(TAGS_URL).mock(return_value=httpx.Response(200, json=TAGS_RESPONSE))
    assert check_models.main(["--config", cfg_path]) == 0
    out = capsys.readouterr().out
    assert "Found 2 models:" in out
    assert "- phi:latest" in out
    assert "Size: 1602463378" in out
    assert "Modified: 2024-05-02T11:30:00Z" in out
    assert "'mistral:7b': mistral:7b" in out


@respx.mock
def test_reports_connection_failure(cfg_path: str, capsys: pytest.CaptureFixture[str]) -> None:
    respx.get(TAGS_URL).mock(side_effect=httpx.ConnectError("Connection refused"))
    assert check_models.main(["--config", cfg_path]) == 1
    out = capsys.readouterr().out
    assert "No models found or connection failed." in out
    assert "Connection test: failed - Failed to connect to Ollama server" in out


def test_reports_invalid_host(tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OLLAMA_BRIDGE_APIHOST", raising=False)
    path = tmp_path / "bad.yaml"
    path.write_text("apihost: ftp://example.org\n", encoding="utf-8")
    assert check_models.run(str(path)) == 1
    assert "Invalid API host URL: ftp://example.org." in capsys.readouterr().out
