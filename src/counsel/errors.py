"""Gateway error taxonomy.

Only transport and protocol failures (plus the loop's own guards) escape a
gateway call.  Tool and persistence failures are turned into tool-result
text so the model can react to them.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for failures returned to the gateway caller."""

    def user_message(self) -> str:
        return str(self)


class TransportError(GatewayError):
    """Connection, DNS, timeout or mid-stream interruption."""

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url

    def user_message(self) -> str:
        if self.url:
            return f"Network error: {self} (while contacting {self.url})"
        return f"Network error: {self}"


class ProtocolError(GatewayError):
    """Provider answered with a non-2xx HTTP status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"API error ({status_code}): {body}")
        self.status_code = status_code
        self.body = body


class ToolLoopExceeded(GatewayError):
    """The model kept requesting tools past the iteration cap."""

    def __init__(self, max_iterations: int) -> None:
        super().__init__(
            f"Tool loop exceeded {max_iterations} iterations without a final answer"
        )
        self.max_iterations = max_iterations


class GatewayCancelled(GatewayError):
    """The caller cancelled the call between iterations."""

    def __init__(self, iterations: int = 0) -> None:
        super().__init__(f"Gateway call cancelled after {iterations} iteration(s)")
        self.iterations = iterations


class PersistenceError(Exception):
    """A store read or write failed."""


class ConfigError(Exception):
    """Configuration file could not be parsed or validated."""
