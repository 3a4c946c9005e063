"""Custom exception hierarchy for HomeNet.

Steady-state failures are absorbed and logged close to where they occur;
these types exist so that the place that absorbs them can tell the
categories apart, and so startup failures can be surfaced with context.
"""

from typing import Optional


class HomeNetError(Exception):
    """Base exception for all HomeNet errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ScannerError(HomeNetError):
    """Device discovery errors.

    Raised when there are issues with:
    - Subnet prefix parsing
    - Neighbor table access
    - mDNS browsing

    Examples:
        >>> raise ScannerError("Invalid subnet prefix", {"subnet": "10.0"})
    """

    pass


class StorageError(HomeNetError):
    """Device snapshot persistence errors.

    Examples:
        >>> raise StorageError("Failed to save devices", {"path": "/path/to/devices.json"})
    """

    pass


class ConfigurationError(HomeNetError):
    """Configuration loading and validation errors.

    Examples:
        >>> raise ConfigurationError("Unknown resolver mode", {"mode": "dot"})
    """

    pass


class GatekeeperError(HomeNetError):
    """DNS gatekeeper startup errors (e.g. the port cannot be bound)."""

    pass


class UpstreamError(HomeNetError):
    """Upstream resolution failures.

    Raised by the forwarders when:
    - The UDP exchange fails or times out
    - The DoH endpoint answers with a non-200 status
    - The response body is not a valid DNS message
    """

    pass


class WakeOnLanError(HomeNetError):
    """Wake-on-LAN errors (malformed MAC, send failure)."""

    pass


class SubprocessError(HomeNetError):
    """Subprocess execution errors.

    Attributes:
        command: The command that failed.
        returncode: Exit code if available.
    """

    def __init__(
        self,
        message: str,
        command: Optional[list] = None,
        returncode: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        details = details or {}
        if command:
            details["command"] = command
        if returncode is not None:
            details["returncode"] = returncode

        super().__init__(message, details)
        self.command = command
        self.returncode = returncode
