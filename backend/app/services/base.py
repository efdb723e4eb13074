"""
Base Service Interface

All services inherit from this base class.
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class BaseService(ABC, Generic[InputT, OutputT]):
    """
    Base class for all services.

    Each service:
    - Has a defined input type
    - Has a defined output type
    - Can check its health
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Service name for logging."""
        pass

    @abstractmethod
    async def execute(self, input_data: InputT) -> OutputT:
        """
        Execute the service's main function.

        Args:
            input_data: Validated input conforming to InputT schema

        Returns:
            Output conforming to OutputT schema

        Raises:
            ServiceError: If execution fails
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if service is healthy and can process requests."""
        pass


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, service_name: str, message: str, details: dict = None):
        self.service_name = service_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{service_name}] {message}")


class ExternalAPIError(ServiceError):
    """External API call failed."""
    pass


class ProviderError(ExternalAPIError):
    """A market-data provider could not return usable candles."""

    def __init__(self, provider: str, reason: str, details: dict = None):
        self.provider = provider
        self.reason = reason
        super().__init__(provider, reason, details)


class ProviderNotConfigured(ProviderError):
    """Provider needs a relay endpoint that is not configured."""
    pass


class AllProvidersFailed(ServiceError):
    """Every candidate provider failed for a fetch."""

    def __init__(self, symbol: str, last_error: Optional[Exception] = None):
        self.symbol = symbol
        self.last_error = last_error
        last = getattr(last_error, "reason", None) or (str(last_error) if last_error else "unknown")
        super().__init__(
            "KlineService",
            f"all_providers_failed: {last}",
            {"symbol": symbol},
        )


class SignalError(ServiceError):
    """Candle series cannot be turned into a signal."""

    def __init__(self, symbol: str, message: str):
        self.symbol = symbol
        super().__init__("SignalSynthesizer", message, {"symbol": symbol})


class InvalidSeries(SignalError):
    """Candle series is empty or malformed."""
    pass


class InsufficientData(SignalError):
    """Candle series is shorter than the indicators require."""
    pass
