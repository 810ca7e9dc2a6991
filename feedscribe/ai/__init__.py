"""
FeedScribe AI Module
Sends summarization requests to an Ollama server.

Ollama is the only backend: it runs locally, needs no API key, and its
REST API is reachable with the requests library alone.
"""

from .ollama_client import CompletionCallback, OllamaRequestClient

# DEFAULT: Use Ollama for all summarization requests
RequestClient = OllamaRequestClient

__all__ = ['CompletionCallback', 'OllamaRequestClient', 'RequestClient']
