"""
Ollama bridge package.

Provides:
- Config/validation gate for a locally hosted Ollama server
- Synchronous HTTP client for model discovery and text generation
- Presentation helpers and a FastAPI surface for displaying results
"""
