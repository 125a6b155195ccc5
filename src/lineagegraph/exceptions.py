"""Custom exceptions for LineageGraph."""


class LineageGraphError(Exception):
    """Base exception for all LineageGraph errors."""


class ConfigError(LineageGraphError):
    """Configuration-related errors."""


class NoTargetError(LineageGraphError):
    """No valid root routine to collect context from."""


class EmptyContextError(LineageGraphError):
    """The root routine resolved, but no source text could be collected."""


class DiagramNotFoundError(LineageGraphError):
    """No fenced diagram block was present in the model output."""


class UnrepairableDiagramError(LineageGraphError):
    """Diagram text was empty, so there is nothing to repair."""


class LLMError(LineageGraphError):
    """LLM provider errors."""


class GatewayError(LLMError):
    """A model call failed (network, timeout, bad response)."""


class ProviderNotAvailableError(LLMError):
    """Raised when an LLM provider's SDK is not installed."""

    def __init__(self, provider: str, package: str):
        super().__init__(
            f"Provider '{provider}' requires the '{package}' package. "
            f"Install it with: pip install lineagegraph[{provider}]"
        )
