from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ConnectorConfig(BaseModel):
    """
    Connection and table parameters supplied by the caller (``configParams``).

    Keys may be given either in snake_case or in the camelCase used by the
    connector's callers (``tableName``, ``awsRegion``, ...).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    table_name: str = Field(alias="tableName")
    # Arrives as a string from most callers; resolved by the query builder
    row_limit: Optional[Union[int, str]] = Field(default=None, alias="rowLimit")

    # Credentials. When omitted, boto3's default credential chain is used.
    aws_access_key_id: Optional[SecretStr] = Field(default=None, alias="awsAccessKeyId")
    aws_secret_access_key: Optional[SecretStr] = Field(
        default=None, alias="awsSecretAccessKey"
    )
    aws_session_token: Optional[SecretStr] = Field(default=None, alias="awsSessionToken")

    aws_region: str = Field(alias="awsRegion")
    database_name: str = Field(alias="databaseName")
    output_location: str = Field(alias="outputLocation")
    workgroup: Optional[str] = Field(default=None, alias="workgroup")


class PollingConfig(BaseModel):
    """
    Controls for the execution poller and the result pager.

    Both ceilings default to ``None``: the poller waits until the engine
    reports a terminal state, however long that takes.
    """

    poll_interval_s: float = Field(default=3.0, ge=0)
    max_wait_s: Optional[float] = Field(default=None, gt=0)
    max_polls: Optional[int] = Field(default=None, ge=1)

    # Forwarded to GetQueryResults as MaxResults
    page_size: Optional[int] = Field(default=None, ge=1, le=1000)


class RunConfig(BaseModel):
    """
    Top-level configuration for the connector itself.
    """

    polling: PollingConfig = Field(default_factory=PollingConfig)

    # Projection controls
    strict_types: bool = False

    # Query controls
    validate_sql: bool = True

    # Logging / tracing
    verbose: bool = False
    log_sql: bool = False
    log_results: bool = False
