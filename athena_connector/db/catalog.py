import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import ConnectorConfig
from ..errors import TransportError
from ..query.schema import SchemaResolver, pick_fields
from ..state import DataType, SchemaField
from .transport import secret_value

logger = logging.getLogger(__name__)

NUMERIC_GLUE_TYPES = {
    "tinyint",
    "smallint",
    "int",
    "integer",
    "bigint",
    "float",
    "double",
    "real",
    "decimal",
}


def glue_type_to_data_type(glue_type: str) -> str:
    """
    Maps a Glue/Hive column type onto number, boolean or string.

    Parameterised types such as decimal(10,2) are matched on their base name.
    Complex types (array<...>, map<...>, struct<...>) are strings.
    """
    base = re.split(r"[(<]", (glue_type or "").strip().lower(), maxsplit=1)[0].strip()
    if base in NUMERIC_GLUE_TYPES:
        return DataType.NUMBER.value
    if base == "boolean":
        return DataType.BOOLEAN.value
    return DataType.STRING.value


class GlueSchemaResolver(SchemaResolver):
    """
    Resolves field ids through the AWS Glue Data Catalog.

    Usage:
        resolver = GlueSchemaResolver.from_config(request.config_params)
        schema = resolver.resolve(["id", "amount"])

    Regular columns come first, then partition keys, as Athena lists them.
    The table definition is fetched once and kept for the life of the
    resolver.
    """

    def __init__(
        self,
        region: str,
        database: str,
        table_name: str,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        aws_session_token: Optional[str] = None,
        client_factory: Optional[Callable[..., Any]] = None,
    ):
        self.region = region
        self.database = database
        self.table_name = table_name
        credentials = {
            "aws_access_key_id": aws_access_key_id,
            "aws_secret_access_key": aws_secret_access_key,
            "aws_session_token": aws_session_token,
        }
        factory = client_factory or boto3.client
        self.client = factory(
            "glue", region_name=region, **{k: v for k, v in credentials.items() if v}
        )
        self._fields: Optional[List[SchemaField]] = None

    @classmethod
    def from_config(cls, config: ConnectorConfig, **kwargs) -> "GlueSchemaResolver":
        return cls(
            region=config.aws_region,
            database=config.database_name,
            table_name=config.table_name,
            aws_access_key_id=secret_value(config.aws_access_key_id),
            aws_secret_access_key=secret_value(config.aws_secret_access_key),
            aws_session_token=secret_value(config.aws_session_token),
            **kwargs,
        )

    def _load_fields(self) -> List[SchemaField]:
        if self._fields is None:
            try:
                response = self.client.get_table(
                    DatabaseName=self.database, Name=self.table_name
                )
            except (BotoCoreError, ClientError) as e:
                raise TransportError(
                    f"Glue get_table failed for {self.database}.{self.table_name}: {e}"
                ) from e

            table = response.get("Table", {})
            columns = table.get("StorageDescriptor", {}).get("Columns", [])
            columns = columns + table.get("PartitionKeys", [])
            self._fields = [
                SchemaField(name=c["Name"], data_type=glue_type_to_data_type(c.get("Type", "")))
                for c in columns
            ]
            logger.debug(
                f"Loaded {len(self._fields)} columns for {self.database}.{self.table_name}"
            )
        return self._fields

    def resolve(self, field_ids: Sequence[str]) -> List[SchemaField]:
        return pick_fields(self._load_fields(), field_ids)

    def get_schema_dict(self) -> Dict[str, List[str]]:
        return {self.table_name: [f.name for f in self._load_fields()]}
