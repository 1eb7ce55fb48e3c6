"""Check which models the configured Ollama server offers.

Prints each model with size and modification date plus the resulting
dropdown options; falls back to a connection test when nothing is found.
"""
from __future__ import annotations
import argparse
import logging
from typing import Optional, Sequence

from ollama_bridge.client import ollama_client
from ollama_bridge.client.service import get_config
from ollama_bridge.common.logging_setup import setup_logging
from ollama_bridge.common.schema import ConfigError, Failure
from ollama_bridge.common.settings import load_settings
from ollama_bridge.web import presentation

LOGGER = logging.getLogger("ollama_bridge.tools.check_models")


def run(config_path: Optional[str] = None) -> int:
    """
    Print the model report for the configured server.

    Args:
        config_path: Optional YAML settings path.

    Returns:
        0 when at least one model was found, 1 otherwise.
    """
    settings = load_settings(config_path)
    config = get_config(settings)
    if isinstance(config, ConfigError):
        print(presentation.message_for(config))
        return 1

    print(f"Ollama available models check ({config.api_host})")
    models = ollama_client.list_models(config)
    if isinstance(models, Failure) or not models:
        if isinstance(models, Failure):
            LOGGER.info("Discovery failed: %s (%s)", models.kind.value, models.detail)
        print("No models found or connection failed.")
        status = presentation.connection_status(config, ollama_client.check_health(config))
        print(f"Connection test: {'ok' if status.success else 'failed'} - {status.message}")
        return 1

    print(f"Found {len(models)} models:")
    for model in models:
        size = model.size_bytes if model.size_bytes is not None else "Unknown size"
        modified = model.modified_at or "Unknown"
        print(f"- {model.name}")
        print(f"    Size: {size}")
        print(f"    Modified: {modified}")

    print("Model options for settings:")
    for value, label in presentation.model_options(models).items():
        print(f"  {value!r}: {label}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="List models available on the configured Ollama server")
    ap.add_argument("--config", default=None, help="YAML settings path")
    ap.add_argument("--verbose", action="store_true", help="Log request diagnostics")
    args = ap.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    return run(args.config)

if __name__ == "__main__":
    raise SystemExit(main())
