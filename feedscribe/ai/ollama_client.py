"""
Ollama Request Client for FeedScribe
Sends summarization requests to a local Ollama server over its REST API.

Two ways to use it:
- generate(): synchronous, raises RuntimeError on any failure.
- submit(): asynchronous, runs generate() on an ExecutorStrategy and hands
  the outcome to a completion callback exactly once, as a RequestResult.
  Failures never surface as exceptions from submit() or from the callback
  invocation; they arrive as RequestResult(success=False, ...).
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

import requests

from feedscribe.config import (
    OLLAMA_API_BASE,
    OLLAMA_CONTEXT_WINDOW,
    OLLAMA_MODEL_NAME,
    OLLAMA_TIMEOUT_SECONDS,
    SUMMARY_TEMPERATURE,
)
from feedscribe.logging_config import debug_log, debug_timing, error, warning
from feedscribe.parallel import ExecutorStrategy, ThreadPoolStrategy
from feedscribe.summarization.result_types import RequestResult

CompletionCallback = Callable[[RequestResult], None]


@dataclass(frozen=True)
class _PendingRequest:
    """Arguments of one submitted request, carried to the worker."""
    text: str
    system_instruction: str
    on_complete: CompletionCallback


class OllamaRequestClient:
    """
    Request client for Ollama's /api/chat endpoint.

    The system instruction goes in a "system" message and the entry text
    in a "user" message, so the same instruction can be reused for every
    entry of a batch.

    Attributes:
        api_base: Ollama server URL.
        model_name: Model used for every request (also the report's model identity).
        timeout: Per-request timeout in seconds.
        strategy: ExecutorStrategy that runs submitted requests.
    """

    def __init__(
        self,
        model_name: str = None,
        api_base: str = None,
        timeout: float = None,
        strategy: ExecutorStrategy | None = None,
        temperature: float = SUMMARY_TEMPERATURE,
        context_window: int = OLLAMA_CONTEXT_WINDOW
    ):
        """
        Initialize the client.

        Args:
            model_name: Ollama model tag. Defaults to OLLAMA_MODEL_NAME.
            api_base: Server URL. Defaults to OLLAMA_API_BASE.
            timeout: Request timeout in seconds. Defaults to OLLAMA_TIMEOUT_SECONDS.
            strategy: Where submitted requests run. Defaults to a
                     ThreadPoolStrategy with PARALLEL_MAX_WORKERS.
            temperature: Sampling temperature.
            context_window: num_ctx sent with every request.
        """
        self.api_base = (api_base or OLLAMA_API_BASE).rstrip('/')
        self.model_name = model_name or OLLAMA_MODEL_NAME
        self.timeout = timeout or OLLAMA_TIMEOUT_SECONDS
        self.strategy = strategy or ThreadPoolStrategy()
        self.temperature = temperature
        self.context_window = context_window
        self.is_connected = False

    def check_connection(self) -> bool:
        """
        Check if Ollama is running and accessible.

        Returns:
            bool: True if Ollama is accessible, False otherwise
        """
        try:
            response = requests.get(f"{self.api_base}/api/tags", timeout=5)
            self.is_connected = response.status_code == 200
            if self.is_connected:
                debug_log("[OLLAMA] Connection successful")
            else:
                debug_log(f"[OLLAMA] Connection failed: Status {response.status_code}")
        except requests.exceptions.ConnectionError:
            debug_log(f"[OLLAMA] Connection error: Cannot reach {self.api_base}")
            self.is_connected = False
        except requests.exceptions.RequestException as e:
            debug_log(f"[OLLAMA] Connection error: {e}")
            self.is_connected = False

        return self.is_connected

    def get_available_models(self) -> list[str]:
        """
        Get names of the models the Ollama server has pulled.

        Returns:
            Model names; empty if the server is unreachable.
        """
        try:
            response = requests.get(f"{self.api_base}/api/tags", timeout=10)
        except requests.exceptions.RequestException as e:
            debug_log(f"[OLLAMA] Error fetching models: {e}")
            return []

        if response.status_code != 200:
            debug_log(f"[OLLAMA] Failed to get models: status {response.status_code}")
            return []

        models = [model['name'] for model in response.json().get('models', [])]
        debug_log(f"[OLLAMA] Found {len(models)} models: {models}")
        return models

    def _build_payload(self, text: str, system_instruction: str) -> dict:
        return {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": text},
            ],
            "stream": False,  # Non-streaming: one response per request
            "options": {
                "num_ctx": self.context_window,
                "temperature": self.temperature,
            },
        }

    def generate(self, text: str, system_instruction: str) -> str:
        """
        Request a completion synchronously.

        Args:
            text: Entry text to summarize.
            system_instruction: Instruction sent as the system message.

        Returns:
            str: The model's reply, stripped.

        Raises:
            RuntimeError: On timeout, connection failure, a non-200 status
                          or a malformed response.
        """
        # 1 token ~ 4 chars; leave room for the reply
        estimated_tokens = (len(text) + len(system_instruction)) // 4
        if estimated_tokens > self.context_window - 300:
            warning(
                f"Request ({estimated_tokens} estimated tokens) may be truncated. "
                f"Context window is {self.context_window} tokens."
            )

        debug_log(f"[OLLAMA CHAT] Model: {self.model_name}, text length: {len(text)} chars")

        start_time = time.time()
        try:
            response = requests.post(
                f"{self.api_base}/api/chat",
                json=self._build_payload(text, system_instruction),
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise RuntimeError(
                f"Request timeout after {self.timeout} seconds"
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise RuntimeError(
                f"Cannot connect to Ollama at {self.api_base}. "
                "Is Ollama running? Start with: ollama serve"
            ) from e
        except requests.exceptions.RequestException as e:
            raise RuntimeError(f"Request failed: {e}") from e

        if response.status_code != 200:
            raise RuntimeError(f"Ollama returned status {response.status_code}: {response.text}")

        try:
            result = response.json()
            reply = result['message']['content']
        except (ValueError, KeyError, TypeError) as e:
            raise RuntimeError(f"Malformed response from Ollama: {response.text[:200]}") from e

        debug_timing(
            f"[OLLAMA CHAT] {result.get('eval_count', 0)} tokens, {len(reply)} chars",
            time.time() - start_time
        )
        return reply.strip()

    def submit(
        self,
        text: str,
        system_instruction: str,
        on_complete: CompletionCallback
    ) -> None:
        """
        Submit a request without waiting for it.

        on_complete is invoked exactly once, on the strategy's worker, with
        a RequestResult. It is never invoked before submit() returns when
        the strategy honours its asynchronous contract.
        """
        self.strategy.submit(
            self._run_request,
            _PendingRequest(text, system_instruction, on_complete)
        )

    def _run_request(self, request: _PendingRequest) -> None:
        """Worker body: generate, wrap the outcome, call back once."""
        start_time = time.time()
        try:
            reply = self.generate(request.text, request.system_instruction)
            result = RequestResult(
                success=True,
                text=reply,
                model_name=self.model_name,
                elapsed_seconds=time.time() - start_time
            )
        except RuntimeError as e:
            result = RequestResult.failure(
                str(e),
                model_name=self.model_name,
                elapsed_seconds=time.time() - start_time
            )

        try:
            request.on_complete(result)
        except Exception as e:
            # Callbacks are meant to contain their own errors
            error(f"[OLLAMA] Completion callback raised: {e}", exc_info=True)

    def health_check(self) -> dict:
        """
        Get health information about the Ollama connection.

        Returns:
            dict: Connection status, server URL, model and available models
        """
        connected = self.check_connection()
        return {
            'connected': connected,
            'api_base': self.api_base,
            'model': self.model_name,
            'available_models': self.get_available_models() if connected else [],
        }

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """
        Release the strategy's workers.

        Args:
            wait: Block until running requests finish.
            cancel_futures: Drop requests that have not started. Their
                           callbacks never fire, so their batch never finishes.
        """
        self.strategy.shutdown(wait=wait, cancel_futures=cancel_futures)
