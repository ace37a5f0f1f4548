from typing import Optional


class AthenaConnectorError(Exception):
    """Base class for every error raised by the connector."""


class BuildError(AthenaConnectorError):
    """The request cannot be turned into a valid query."""


class SchemaError(BuildError):
    """A requested field is unknown to the schema catalog."""


class TransportError(AthenaConnectorError):
    """Submitting, polling or fetching against the remote engine failed."""


class QueryFailed(AthenaConnectorError):
    """The engine reported a terminal failure for the execution."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class QueryCancelled(AthenaConnectorError):
    """The engine reported that the execution was cancelled."""

    def __init__(self, message: str = "Query cancelled"):
        super().__init__(message)


class PollTimeout(AthenaConnectorError):
    """A configured polling ceiling was reached before a terminal state."""


class CoercionAnomaly(AthenaConnectorError):
    """A raw cell could not be converted to its declared type."""

    def __init__(self, field: str, raw: Optional[str], data_type: str):
        super().__init__(
            f"Cannot convert value {raw!r} of field '{field}' to {data_type}"
        )
        self.field = field
        self.raw = raw
        self.data_type = data_type
