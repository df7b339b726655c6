"""
LLM integration layer for NordChat.

Talks to any OpenAI-compatible chat completions API (Groq by default) with
plain ``requests`` calls:

- ``probe(key)``: cheap credential check (``GET /models``)
- ``chat(key, model, messages)``: one chat completion, returns the text

Every failure is raised as ``CollaboratorError`` with a category, so callers
never see raw ``requests`` exceptions.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from constants import DEFAULT_AGENT_API_URL
from errors import UNEXPECTED, CollaboratorError, category_for_status, classify_request_error


class LLMClient:
    service = "llm"

    def __init__(
        self,
        base_url: str = DEFAULT_AGENT_API_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or DEFAULT_AGENT_API_URL).rstrip("/")
        self.timeout = float(timeout)
        self._http = session or requests.Session()

    def _headers(self, key: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {key}", "Content-Type": "application/json"}

    def _request(self, method: str, path: str, key: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self._http.request(method, url, headers=self._headers(key), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logging.warning("LLM request %s %s failed: %s", method, path, e)
            raise CollaboratorError(str(e), classify_request_error(e), self.service, e) from e

        if resp.status_code >= 400:
            category = category_for_status(resp.status_code)
            logging.warning("LLM request %s %s returned HTTP %s", method, path, resp.status_code)
            raise CollaboratorError(f"HTTP {resp.status_code}", category, self.service)

        try:
            return resp.json()
        except ValueError as e:
            raise CollaboratorError("Malformed JSON from LLM provider", UNEXPECTED, self.service, e) from e

    def probe(self, key: str) -> None:
        """Raise CollaboratorError unless ``key`` is accepted by the provider."""
        self._request("GET", "/models", key)

    def chat(
        self,
        key: str,
        model: str,
        messages: List[Dict[str, str]],
        *,
        temperature: float = 0.7,
        max_tokens: int = 512,
    ) -> str:
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        data = self._request("POST", "/chat/completions", key, json=payload)
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise CollaboratorError("Unexpected completion payload", UNEXPECTED, self.service, e) from e
        return str(text or "").strip()
