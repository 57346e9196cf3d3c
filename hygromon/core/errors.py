# hygromon/core/errors.py
from __future__ import annotations


class MonitorError(Exception):
    """
    Base class for all expected operational errors in hygromon.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / setup errors (no connection attempted yet)
# ---------------------------------------------------------------------------

class MetadataError(MonitorError):
    """
    Metadata YAML is missing or malformed.

    Examples:
      - transports.yml / sensors.yml not found
      - missing 'label' / 'driver' / 'key_param'
      - YAML syntax error
    """
    code = "metadata_error"


class TransportConfigError(MonitorError):
    """
    Transport configuration is invalid or inconsistent with metadata.

    Examples:
      - unknown transport label or type id
      - unknown driver key
      - invalid / missing transport parameters
    """
    code = "transport_config_error"
