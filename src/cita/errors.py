"""
Exceptions raised by the CITA client.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class EndpointFailure:
    """Why one endpoint failed during a broadcast call."""
    endpoint: str
    reason: str
    cause: Optional[BaseException] = None


class CitaClientError(Exception):
    """Base class for every error raised by this package."""
    pass


# ============================================================================
# Dispatch errors
# ============================================================================

class DispatchError(CitaClientError):
    """Raised when a broadcast call cannot be completed."""
    pass


class UnsupportedMethod(DispatchError):
    """Raised for a method outside the allow-list. No request is sent."""

    def __init__(self, method: str):
        super().__init__(f"Unsupported JSON-RPC method: {method!r}")
        self.method = method


class NoEndpointsConfigured(DispatchError):
    """Raised when a call is attempted with an empty endpoint set."""

    def __init__(self):
        super().__init__("No node endpoints configured")


class TransportFailure(DispatchError):
    """
    Raised when one or more endpoints failed during a broadcast call.

    The whole batch fails; ``failures`` lists every endpoint that failed and why.
    """

    def __init__(self, failures: Sequence[EndpointFailure]):
        self.failures: List[EndpointFailure] = list(failures)
        summary = "; ".join(f"{f.endpoint}: {f.reason}" for f in self.failures)
        super().__init__(f"{len(self.failures)} endpoint(s) failed: {summary}")

    @property
    def endpoints(self) -> List[str]:
        return [f.endpoint for f in self.failures]


class ChainIdUnavailable(DispatchError):
    """Raised in strict mode when the metadata reply carries no usable chain id."""
    pass


# ============================================================================
# Transaction errors
# ============================================================================

class TransactionBuildError(CitaClientError):
    """Raised when transaction construction fails."""
    pass


class MalformedInput(TransactionBuildError):
    """Raised for invalid hex in a payload, address or key argument."""

    def __init__(self, field: str, message: str, value: Optional[str] = None):
        super().__init__(f"Malformed {field}: {message}")
        self.field = field
        self.value = value


class EncodingInvariantViolation(TransactionBuildError):
    """Raised when a well-formed transaction record fails to encode."""
    pass
