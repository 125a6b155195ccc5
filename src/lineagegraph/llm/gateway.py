"""Single request/response model calls with a timeout."""

from __future__ import annotations

import asyncio
import logging
import time

from lineagegraph.config import LLMConfig
from lineagegraph.exceptions import GatewayError, ProviderNotAvailableError
from lineagegraph.llm.base import LLMProvider, Message
from lineagegraph.llm.factory import create_provider

logger = logging.getLogger("lineagegraph.llm")


class ModelGateway:
    """Sends one prompt to a provider and returns the response text.

    Every provider failure, including the timeout, surfaces as
    ``GatewayError``. A missing provider SDK surfaces as
    ``ProviderNotAvailableError``.
    """

    def __init__(self, provider: LLMProvider, config: LLMConfig | None = None) -> None:
        self.provider = provider
        self.config = config or LLMConfig()

    @classmethod
    def from_config(cls, config: LLMConfig) -> ModelGateway:
        return cls(create_provider(config), config)

    async def send(self, prompt: str, system: str | None = None) -> str:
        messages = []
        if system:
            messages.append(Message(role="system", content=system))
        messages.append(Message(role="user", content=prompt))

        logger.debug(
            "Sending prompt (%d chars) to %s model %s",
            len(prompt),
            self.config.provider,
            self.provider.model,
        )
        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self.provider.complete(
                    messages,
                    temperature=self.config.temperature,
                    max_tokens=self.config.max_tokens,
                    top_p=self.config.top_p,
                ),
                timeout=self.config.timeout_seconds,
            )
        except ProviderNotAvailableError:
            raise
        except asyncio.TimeoutError as e:
            raise GatewayError(
                f"Model call timed out after {self.config.timeout_seconds:g}s"
            ) from e
        except Exception as e:
            logger.debug("Model call failed", exc_info=True)
            raise GatewayError(f"Model call failed: {e}") from e

        elapsed = time.perf_counter() - start
        logger.info(
            "Model responded in %.1fs (%s)", elapsed, response.finish_reason or "no finish reason"
        )
        if not response.content.strip():
            raise GatewayError("Model returned an empty response.")
        return response.content
