"""
OpenAI-compatible HTTP client (chat completions + background responses).

Every transport, HTTP or payload problem is raised as AiServiceError so
callers can fall back or apologise without knowing about requests.
"""
import logging
from typing import Any

import requests

from app.config import get_settings

logger = logging.getLogger(__name__)


class AiServiceError(Exception):
    pass


class AiClient:
    def __init__(self, api_key: str | None = None, base_url: str | None = None, timeout: float | None = None):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.AI_API_KEY
        self.base_url = (base_url or settings.AI_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.AI_REQUEST_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, payload: dict | None = None) -> dict[str, Any]:
        if not self.configured:
            raise AiServiceError("AI API key is not configured")
        url = f"{self.base_url}{path}"
        try:
            resp = requests.request(method, url, json=payload, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            raise AiServiceError(f"AI request failed: {exc}") from exc

        if resp.status_code == 429:
            raise AiServiceError("AI rate limit exceeded")
        if resp.status_code >= 400:
            logger.warning("AI API %s %s -> %s: %s", method, path, resp.status_code, resp.text[:500])
            raise AiServiceError(f"AI API error {resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            raise AiServiceError("AI API returned invalid JSON") from exc

    def chat_completion(
        self,
        model: str,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
        tools: list[dict] | None = None,
        tool_choice: dict | None = None,
    ) -> dict[str, Any]:
        """
        Returns the first choice's message ({"content": ..., "tool_calls": [...]}).
        """
        payload: dict[str, Any] = {"model": model, "messages": messages}
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if temperature is not None:
            payload["temperature"] = temperature
        if tools:
            payload["tools"] = tools
        if tool_choice:
            payload["tool_choice"] = tool_choice

        data = self._request("POST", "/chat/completions", payload)
        try:
            return data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as exc:
            raise AiServiceError("AI response has no choices") from exc

    def start_background_response(
        self,
        model: str,
        instructions: str,
        prompt: str,
        max_output_tokens: int | None = None,
    ) -> str:
        """Queue a long-running response; returns its id."""
        payload: dict[str, Any] = {
            "model": model,
            "instructions": instructions,
            "input": prompt,
            "background": True,
        }
        if max_output_tokens is not None:
            payload["max_output_tokens"] = max_output_tokens
        data = self._request("POST", "/responses", payload)
        run_id = data.get("id")
        if not run_id:
            raise AiServiceError("AI response has no id")
        return run_id

    def get_background_response(self, run_id: str) -> dict[str, Any]:
        """
        Fetch a background response as {"status", "output", "error"}.

        `output` is the concatenated output text (None until completed).
        """
        data = self._request("GET", f"/responses/{run_id}")
        error = data.get("error")
        return {
            "status": data.get("status", ""),
            "output": _output_text(data) or None,
            "error": error.get("message") if isinstance(error, dict) else error,
        }


def _output_text(data: dict[str, Any]) -> str:
    if data.get("output_text"):
        return data["output_text"]
    parts = []
    for item in data.get("output") or []:
        if item.get("type") != "message":
            continue
        for content in item.get("content") or []:
            if content.get("type") == "output_text" and content.get("text"):
                parts.append(content["text"])
    return "".join(parts)
