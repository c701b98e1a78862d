"""HTTP clients for translation and speech services.

Responsibilities:
- Send JSON requests to a local Ollama server and to OpenAI's speech endpoint.
- Normalize transport and HTTP failures into one provider exception type.
- Redact credentials from any provider text that reaches a user-facing message.
"""

from __future__ import annotations

import json
import re
import socket
from typing import Any

import requests


class ProviderError(RuntimeError):
    """Raised when a provider request fails or returns malformed output."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider error metadata for stage-aware diagnostics."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code


class _JsonHttpClient:
    """Shared HTTP settings and failure mapping for provider clients."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180
    provider_label = "Provider"

    def __init__(self, *, base_url: str, timeout_seconds: float | None = 120.0) -> None:
        """Initialize base URL and request timeout (`None` waits indefinitely)."""

        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def _post_json_bytes(
        self,
        *,
        endpoint_path: str,
        payload: dict[str, Any],
        require_non_empty_response: bool = False,
    ) -> bytes:
        """POST a JSON payload and return raw response bytes."""

        endpoint = f"{self.base_url}{endpoint_path}"
        try:
            response = requests.post(
                endpoint,
                headers=self._headers(),
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            response_bytes = bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_provider_error(exc) from exc
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = f"{self.provider_label} request timed out."
            else:
                detail = (
                    f"{self.provider_label} request transport error: "
                    f"{self._short_message(self._redact_sensitive_tokens(str(exc)))}"
                )
            raise ProviderError(detail, failure_kind=failure_kind) from exc

        if require_non_empty_response and not response_bytes:
            raise ProviderError(f"{self.provider_label} response is empty.")
        return response_bytes

    def _post_json(self, *, endpoint_path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON payload and decode a JSON object response."""

        raw = self._post_json_bytes(endpoint_path=endpoint_path, payload=payload)
        try:
            decoded = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProviderError(f"{self.provider_label} returned invalid JSON payload.") from exc
        if not isinstance(decoded, dict):
            raise ProviderError(f"{self.provider_label} response root must be an object.")
        return decoded

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
        return re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise message and optional error code from an error body.

        OpenAI nests `{"error": {"message", "code"}}`; Ollama sends `{"error": "..."}`.
        """

        if not body:
            return "", None
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(cls._redact_sensitive_tokens(body)), None

        provider_code: str | None = None
        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, str) and error_payload.strip():
                message = error_payload.strip()
            elif isinstance(error_payload, dict):
                code_value = error_payload.get("code")
                if isinstance(code_value, str) and code_value.strip():
                    provider_code = code_value.strip()
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()

        if message is None:
            message = body
        return cls._short_message(cls._redact_sensitive_tokens(message)), provider_code

    @staticmethod
    def _classify_http_failure(
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify HTTP errors into deterministic diagnostic kinds."""

        message_lower = provider_message.lower()
        normalized_code = provider_code.lower() if provider_code is not None else ""

        if status_code == 401 or "api key" in message_lower:
            return "invalid_api_key"
        if normalized_code == "model_not_found" or (
            "model" in message_lower
            and any(phrase in message_lower for phrase in ("not found", "does not exist", "invalid"))
        ):
            return "invalid_model"
        if status_code in {408, 504} or "timeout" in message_lower or "timed out" in message_lower:
            return "timeout"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, (TimeoutError, socket.timeout, requests.Timeout)):
            return "timeout"
        return "transport"

    def _http_error_to_provider_error(self, exc: requests.HTTPError) -> ProviderError:
        """Convert HTTP errors into normalized provider exceptions with metadata."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = ""
        if exc.response is not None:
            body = bytes(exc.response.content).decode("utf-8", errors="replace").strip()
        provider_message, provider_code = self._extract_provider_message(body)
        failure_kind = self._classify_http_failure(status_code, provider_message, provider_code)

        headline = {
            "invalid_api_key": f"{self.provider_label} authentication failed",
            "invalid_model": f"{self.provider_label} rejected the selected model",
            "timeout": f"{self.provider_label} request timed out",
        }.get(failure_kind, f"{self.provider_label} request failed")

        if provider_message:
            detail = f"{headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{headline} (HTTP {status_code})."
        return ProviderError(
            detail,
            failure_kind=failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )


class OllamaChatClient(_JsonHttpClient):
    """Minimal requests-based client for Ollama's `/api/chat` endpoint."""

    provider_label = "Ollama"

    def __init__(
        self,
        *,
        base_url: str = "http://localhost:11434",
        timeout_seconds: float | None = 300.0,
    ) -> None:
        super().__init__(base_url=base_url, timeout_seconds=timeout_seconds)

    def chat_structured(
        self,
        *,
        model: str,
        system_prompt: str,
        user_content: str,
        response_schema: dict[str, Any],
    ) -> dict[str, Any]:
        """Run one non-streaming chat turn constrained to a JSON schema.

        Returns the decoded JSON object found in the assistant message content.
        """

        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "format": response_schema,
            "stream": False,
        }
        response = self._post_json(endpoint_path="/api/chat", payload=payload)
        message = response.get("message")
        if not isinstance(message, dict):
            raise ProviderError("Ollama response missing `message` object.")
        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ProviderError("Ollama response message content is empty.")
        try:
            structured = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ProviderError("Ollama message content is not valid JSON.") from exc
        if not isinstance(structured, dict):
            raise ProviderError("Ollama message content must be a JSON object.")
        return structured


class OpenAISpeechClient(_JsonHttpClient):
    """Minimal requests-based OpenAI speech HTTP client for TTS synthesis."""

    provider_label = "OpenAI"

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float | None = 60.0,
    ) -> None:
        """Initialize OpenAI HTTP client settings."""

        super().__init__(base_url=base_url, timeout_seconds=timeout_seconds)
        self.api_key = api_key.strip() if isinstance(api_key, str) else ""

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def synthesize_speech(
        self,
        *,
        model: str,
        voice: str,
        text: str,
        response_format: str = "wav",
        speed: float = 1.0,
    ) -> bytes:
        """Return synthesized audio bytes from OpenAI `/audio/speech`."""

        if not self.api_key:
            raise ProviderError(
                "Missing OpenAI API key. Set `OPENAI_API_KEY`, use `--api-key`, or "
                "store one with `pagevoice credentials --set-api-key`.",
                failure_kind="invalid_api_key",
            )
        payload = {
            "model": model,
            "voice": voice,
            "input": text,
            "response_format": response_format,
            "speed": speed,
        }
        return self._post_json_bytes(
            endpoint_path="/audio/speech",
            payload=payload,
            require_non_empty_response=True,
        )
