"""
AI Provider Client

Single-shot text generation against the Gemini REST API.
Failures carry a ProviderErrorKind so callers never have to match on
error text to tell a missing key from a broken request.
"""

import logging
from enum import Enum
from typing import Optional, Protocol

import httpx

logger = logging.getLogger(__name__)


class ProviderErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    REQUEST_FAILED = "request_failed"
    EMPTY_REPLY = "empty_reply"


class ProviderError(RuntimeError):
    """Raised when the provider call does not produce text."""

    def __init__(self, kind: ProviderErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    @property
    def is_missing_credential(self) -> bool:
        return self.kind == ProviderErrorKind.MISSING_CREDENTIAL


class Provider(Protocol):
    async def generate(self, prompt: str) -> str: ...


class GeminiProvider:
    """
    Client for the Gemini generateContent endpoint.

    The API key is passed in at construction; an empty key is not an error
    until generate() is called, so the studio still starts without one.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        credential_name: str = "GEMINI_API_KEY",
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or None
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.credential_name = credential_name
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=timeout)

        if self.api_key:
            logger.info(f"Gemini provider initialized (model: {model})")
        else:
            logger.warning(f"Gemini provider has no key; set {credential_name} to enable AI features")

    async def generate(self, prompt: str) -> str:
        """
        Send one prompt and return the reply text.

        Raises:
            ProviderError: MISSING_CREDENTIAL without a key, REQUEST_FAILED on
                transport or HTTP errors, EMPTY_REPLY when no text comes back
        """
        if not self.api_key:
            raise ProviderError(
                ProviderErrorKind.MISSING_CREDENTIAL,
                f"Missing {self.credential_name} in environment.",
            )

        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

        try:
            response = await self.client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                json=payload,
                headers=headers,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {e}")
            raise ProviderError(ProviderErrorKind.REQUEST_FAILED, f"Failed to reach Gemini: {e}") from e
        except ValueError as e:
            logger.error(f"Gemini returned a non-JSON body: {e}")
            raise ProviderError(ProviderErrorKind.REQUEST_FAILED, f"Unreadable Gemini response: {e}") from e

        if not isinstance(data, dict):
            raise ProviderError(ProviderErrorKind.EMPTY_REPLY, "Gemini reply was not a JSON object.")

        text = self._extract_text(data)
        if not text:
            raise ProviderError(ProviderErrorKind.EMPTY_REPLY, "Gemini returned no text.")
        return text

    @staticmethod
    def _extract_text(data: dict) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)

    async def close(self):
        """Close the HTTP client."""
        if self.client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
