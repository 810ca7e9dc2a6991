"""
Tests for the Ollama request client.

These tests verify:
1. The chat payload (system/user messages, context window, no streaming)
2. Every transport or service failure becomes a RuntimeError from generate()
3. submit() never calls back before it returns, and calls back exactly once
4. Failures reach the callback as RequestResult(success=False)

requests is patched; no Ollama server is needed.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from feedscribe.ai import OllamaRequestClient
from feedscribe.parallel import DeferredStrategy
from feedscribe.summarization import RequestResult

POST = 'feedscribe.ai.ollama_client.requests.post'
GET = 'feedscribe.ai.ollama_client.requests.get'


def _response(status_code=200, json_data=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


def _chat_reply(content):
    return _response(json_data={"message": {"role": "assistant", "content": content},
                                "eval_count": 12})


@pytest.fixture
def strategy():
    return DeferredStrategy()


@pytest.fixture
def client(strategy):
    return OllamaRequestClient(
        model_name="test-model",
        api_base="http://ollama.test:11434/",
        timeout=30,
        strategy=strategy,
        context_window=4096
    )


class TestGenerate:
    """Test the synchronous request path."""

    def test_payload_sent_to_chat_endpoint(self, client):
        """System instruction and text go in separate chat messages."""
        with patch(POST, return_value=_chat_reply("A summary.")) as mock_post:
            client.generate("Article body", "Summarize this.")

        args, kwargs = mock_post.call_args
        assert args[0] == "http://ollama.test:11434/api/chat"
        assert kwargs['timeout'] == 30
        payload = kwargs['json']
        assert payload['model'] == "test-model"
        assert payload['stream'] is False
        assert payload['messages'] == [
            {"role": "system", "content": "Summarize this."},
            {"role": "user", "content": "Article body"},
        ]
        assert payload['options']['num_ctx'] == 4096

    def test_returns_stripped_reply(self, client):
        with patch(POST, return_value=_chat_reply("\n  A summary.  \n")):
            assert client.generate("text", "instr") == "A summary."

    def test_non_200_status_raises(self, client):
        with patch(POST, return_value=_response(500, text="model not found")):
            with pytest.raises(RuntimeError, match="status 500: model not found"):
                client.generate("text", "instr")

    def test_timeout_raises(self, client):
        with patch(POST, side_effect=requests.exceptions.Timeout()):
            with pytest.raises(RuntimeError, match="timeout after 30 seconds"):
                client.generate("text", "instr")

    def test_connection_error_raises(self, client):
        with patch(POST, side_effect=requests.exceptions.ConnectionError()):
            with pytest.raises(RuntimeError, match="Cannot connect to Ollama at http://ollama.test:11434"):
                client.generate("text", "instr")

    def test_other_request_error_raises(self, client):
        with patch(POST, side_effect=requests.exceptions.TooManyRedirects("loop")):
            with pytest.raises(RuntimeError, match="Request failed"):
                client.generate("text", "instr")

    @pytest.mark.parametrize("response", [
        _response(json_data=ValueError("not json"), text="<html>"),
        _response(json_data={"done": True}),
        _response(json_data={"message": None}),
    ])
    def test_malformed_response_raises(self, client, response):
        with patch(POST, return_value=response):
            with pytest.raises(RuntimeError, match="Malformed response"):
                client.generate("text", "instr")

    def test_long_text_logs_truncation_warning(self, client):
        """Text that cannot fit the context window is still sent, with a warning."""
        with patch(POST, return_value=_chat_reply("ok")), \
             patch('feedscribe.ai.ollama_client.warning') as mock_warning:
            client.generate("x" * 40_000, "instr")

        mock_warning.assert_called_once()
        assert "may be truncated" in mock_warning.call_args[0][0]


class TestSubmit:
    """Test the asynchronous request path."""

    def test_callback_not_invoked_before_submit_returns(self, client, strategy):
        on_complete = MagicMock()
        with patch(POST, return_value=_chat_reply("done")) as mock_post:
            client.submit("text", "instr", on_complete)

            on_complete.assert_not_called()
            mock_post.assert_not_called()
            assert strategy.pending_count == 1

    def test_success_reaches_callback_once(self, client, strategy):
        on_complete = MagicMock()
        with patch(POST, return_value=_chat_reply(" The gist. ")):
            client.submit("text", "instr", on_complete)
            strategy.run_pending()

        on_complete.assert_called_once()
        result = on_complete.call_args[0][0]
        assert isinstance(result, RequestResult)
        assert result.success
        assert result.text == "The gist."
        assert result.model_name == "test-model"

    def test_failure_reaches_callback_as_result(self, client, strategy):
        on_complete = MagicMock()
        with patch(POST, side_effect=requests.exceptions.ConnectionError()):
            client.submit("text", "instr", on_complete)
            strategy.run_pending()

        result = on_complete.call_args[0][0]
        assert result.success is False
        assert result.text == ""
        assert "Cannot connect to Ollama" in result.error_message

    def test_results_follow_run_order(self, client, strategy):
        """Each callback gets the reply to its own request."""
        replies = {"first": "one", "second": "two", "third": "three"}
        received = []

        def fake_post(url, json, timeout):
            return _chat_reply(replies[json['messages'][1]['content']])

        with patch(POST, side_effect=fake_post):
            for text in replies:
                client.submit(text, "instr", lambda r, t=text: received.append((t, r.text)))
            strategy.run_pending(order=[2, 0, 1])

        assert received == [("third", "three"), ("first", "one"), ("second", "two")]

    def test_callback_exception_is_contained(self, client, strategy):
        """A raising callback is logged, not propagated to the worker."""
        on_complete = MagicMock(side_effect=ValueError("bad callback"))
        with patch(POST, return_value=_chat_reply("ok")), \
             patch('feedscribe.ai.ollama_client.error') as mock_error:
            client.submit("text", "instr", on_complete)
            strategy.run_pending()

        on_complete.assert_called_once()
        mock_error.assert_called_once()

    def test_shutdown_runs_queued_requests(self, client, strategy):
        on_complete = MagicMock()
        with patch(POST, return_value=_chat_reply("ok")):
            client.submit("text", "instr", on_complete)
            client.shutdown(wait=True)

        on_complete.assert_called_once()

    def test_shutdown_with_cancel_drops_queued_requests(self, client, strategy):
        on_complete = MagicMock()
        with patch(POST, return_value=_chat_reply("ok")) as mock_post:
            client.submit("text", "instr", on_complete)
            client.shutdown(wait=False, cancel_futures=True)

        mock_post.assert_not_called()
        on_complete.assert_not_called()
        assert strategy.pending_count == 0


class TestConnection:
    """Test connection and model listing helpers."""

    def test_check_connection_ok(self, client):
        with patch(GET, return_value=_response(200, json_data={"models": []})):
            assert client.check_connection() is True
        assert client.is_connected

    def test_check_connection_unreachable(self, client):
        with patch(GET, side_effect=requests.exceptions.ConnectionError()):
            assert client.check_connection() is False

    def test_get_available_models(self, client):
        tags = {"models": [{"name": "gemma3:1b"}, {"name": "llama3.2:3b"}]}
        with patch(GET, return_value=_response(200, json_data=tags)):
            assert client.get_available_models() == ["gemma3:1b", "llama3.2:3b"]

    def test_health_check(self, client):
        tags = {"models": [{"name": "test-model"}]}
        with patch(GET, return_value=_response(200, json_data=tags)):
            status = client.health_check()

        assert status == {
            'connected': True,
            'api_base': "http://ollama.test:11434",
            'model': "test-model",
            'available_models': ["test-model"],
        }

    def test_defaults_from_config(self):
        from feedscribe.config import OLLAMA_API_BASE, OLLAMA_MODEL_NAME
        client = OllamaRequestClient(strategy=DeferredStrategy())
        assert client.model_name == OLLAMA_MODEL_NAME
        assert client.api_base == OLLAMA_API_BASE.rstrip('/')
