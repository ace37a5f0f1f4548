"""
Athena connector: typed rows from one asynchronous Athena query.
"""
from .orchestrator import AthenaConnector, fetch_data
from .config import ConnectorConfig, PollingConfig, RunConfig
from .db.transport import AthenaTransport, Boto3AthenaTransport
from .db.catalog import GlueSchemaResolver
from .query.schema import SchemaResolver, StaticSchemaResolver
from .state import DataType, FetchResult, QueryRequest, SchemaField, TypedRow
from .errors import (
    AthenaConnectorError, BuildError, SchemaError, TransportError,
    QueryFailed, QueryCancelled, PollTimeout, CoercionAnomaly,
)

__all__ = [
    "AthenaConnector", "fetch_data",
    "ConnectorConfig", "PollingConfig", "RunConfig",
    "AthenaTransport", "Boto3AthenaTransport",
    "SchemaResolver", "StaticSchemaResolver", "GlueSchemaResolver",
    "DataType", "FetchResult", "QueryRequest", "SchemaField", "TypedRow",
    "AthenaConnectorError", "BuildError", "SchemaError", "TransportError",
    "QueryFailed", "QueryCancelled", "PollTimeout", "CoercionAnomaly",
]
