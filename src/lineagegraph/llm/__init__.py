"""LLM provider abstraction layer."""

from lineagegraph.llm.base import LLMProvider, LLMResponse, Message
from lineagegraph.llm.factory import create_provider
from lineagegraph.llm.gateway import ModelGateway

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "Message",
    "ModelGateway",
    "create_provider",
]
