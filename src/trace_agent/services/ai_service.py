"""OpenAI SDK wrapper for tool-calling chat completions."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    OpenAIError,
)

from ..config import AIConfig

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """A completion request failed. The message is shown to the user verbatim."""


class AIService:
    def __init__(self, config: AIConfig) -> None:
        self.config = config
        self._build_client()

    def _build_client(self) -> None:
        timeout = httpx.Timeout(
            float(self.config.request_timeout),
            connect=float(self.config.connect_timeout),
        )
        # SECURITY-REVIEW: verify=False only when user explicitly sets verify_ssl: false in config
        http_client = httpx.AsyncClient(
            verify=self.config.verify_ssl,
            timeout=timeout,
        )
        self.client = AsyncOpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key,
            http_client=http_client,
        )

    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> Any:
        """Send one non-streaming completion request and return the raw response."""
        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
        }
        if tools:
            kwargs["tools"] = tools

        logger.info("Calling AI model=%s messages=%d", self.config.model, len(messages))
        try:
            return await self.client.chat.completions.create(**kwargs)
        except AuthenticationError as e:
            logger.error("AI authentication failed")
            raise AIServiceError(f"API error: authentication failed ({e.message})") from e
        except APITimeoutError as e:
            logger.warning("AI request timed out after %ds", self.config.request_timeout)
            raise AIServiceError(f"API error: request timed out after {self.config.request_timeout}s") from e
        except APIConnectionError as e:
            logger.warning("AI connection failed: %s", e)
            raise AIServiceError(f"API error: {e}") from e
        except APIStatusError as e:
            logger.error("AI API returned status %d: %s", e.status_code, e.message)
            raise AIServiceError(f"API error: {e.message}") from e
        except OpenAIError as e:
            logger.exception("AI request failed")
            raise AIServiceError(f"API error: {e}") from e

    async def validate_connection(self) -> tuple[bool, str, list[str]]:
        """Check the endpoint by listing models. Returns (ok, message, model ids)."""
        try:
            models = await self.client.models.list()
            model_ids = [m.id for m in models.data]
            return True, "Connected", model_ids
        except AuthenticationError:
            return False, "Authentication failed: check your API key", []
        except APITimeoutError:
            return False, "Connection timed out", []
        except APIConnectionError:
            return False, f"Cannot connect to {self.config.base_url or 'the default endpoint'}", []
        except Exception as e:
            logger.exception("Connection validation failed")
            return False, f"Error: {e}", []

    async def close(self) -> None:
        await self.client.close()
