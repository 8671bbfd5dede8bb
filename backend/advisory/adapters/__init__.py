"""Advisory adapters: chat (stub, local Ollama) and text-to-speech (HTTP)."""
