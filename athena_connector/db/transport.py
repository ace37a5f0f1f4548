from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import ConnectorConfig
from ..errors import TransportError
from ..state import ExecutionStatus, ResultPage


class AthenaTransport(ABC):
    """
    The three engine calls the connector needs. Implementations perform the
    signed request and translate responses into ExecutionStatus / ResultPage.
    """

    @abstractmethod
    def start_query_execution(
        self,
        region: str,
        client_token: str,
        database: str,
        query: str,
        output_location: str,
        workgroup: Optional[str] = None,
    ) -> str:
        """Start the query and return the engine's execution id."""
        pass

    @abstractmethod
    def get_query_execution(self, region: str, execution_id: str) -> ExecutionStatus:
        """Return the current status of an execution."""
        pass

    @abstractmethod
    def get_query_results(
        self,
        region: str,
        execution_id: str,
        next_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> ResultPage:
        """Return one page of results."""
        pass


def secret_value(value) -> Optional[str]:
    return value.get_secret_value() if value is not None else None


class Boto3AthenaTransport(AthenaTransport):
    """
    Transport backed by boto3's Athena client.

    Credentials come from the connector config when present, otherwise from
    boto3's default chain. One client is created lazily per region.
    botocore errors are re-raised as TransportError; nothing is retried.

    Usage:
        transport = Boto3AthenaTransport.from_config(request.config_params)
    """

    def __init__(
        self,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        aws_session_token: Optional[str] = None,
        client_factory: Optional[Callable[..., Any]] = None,
    ):
        self._credentials = {
            "aws_access_key_id": aws_access_key_id,
            "aws_secret_access_key": aws_secret_access_key,
            "aws_session_token": aws_session_token,
        }
        self._client_factory = client_factory or boto3.client
        self._clients: Dict[str, Any] = {}

    @classmethod
    def from_config(cls, config: ConnectorConfig, **kwargs) -> "Boto3AthenaTransport":
        return cls(
            aws_access_key_id=secret_value(config.aws_access_key_id),
            aws_secret_access_key=secret_value(config.aws_secret_access_key),
            aws_session_token=secret_value(config.aws_session_token),
            **kwargs,
        )

    def _client(self, region: str):
        if region not in self._clients:
            credentials = {k: v for k, v in self._credentials.items() if v}
            self._clients[region] = self._client_factory(
                "athena", region_name=region, **credentials
            )
        return self._clients[region]

    def _call(self, region: str, operation: str, **params) -> Dict[str, Any]:
        try:
            return getattr(self._client(region), operation)(**params)
        except (BotoCoreError, ClientError) as e:
            raise TransportError(f"Athena {operation} failed: {e}") from e

    def start_query_execution(
        self,
        region: str,
        client_token: str,
        database: str,
        query: str,
        output_location: str,
        workgroup: Optional[str] = None,
    ) -> str:
        params: Dict[str, Any] = {
            "ClientRequestToken": client_token,
            "QueryExecutionContext": {"Database": database},
            "QueryString": query,
            "ResultConfiguration": {"OutputLocation": output_location},
        }
        if workgroup:
            params["WorkGroup"] = workgroup

        response = self._call(region, "start_query_execution", **params)
        try:
            return response["QueryExecutionId"]
        except KeyError as e:
            raise TransportError("StartQueryExecution response has no QueryExecutionId") from e

    def get_query_execution(self, region: str, execution_id: str) -> ExecutionStatus:
        response = self._call(region, "get_query_execution", QueryExecutionId=execution_id)
        try:
            status = response["QueryExecution"]["Status"]
            return ExecutionStatus(
                state=status["State"].lower(),
                reason=status.get("StateChangeReason"),
            )
        except KeyError as e:
            raise TransportError(f"GetQueryExecution response is missing {e}") from e

    def get_query_results(
        self,
        region: str,
        execution_id: str,
        next_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> ResultPage:
        params: Dict[str, Any] = {"QueryExecutionId": execution_id}
        if next_token:
            params["NextToken"] = next_token
        if max_results:
            params["MaxResults"] = max_results

        response = self._call(region, "get_query_results", **params)
        try:
            result_set = response["ResultSet"]
            columns = [
                info["Name"] for info in result_set["ResultSetMetadata"]["ColumnInfo"]
            ]
            rows = [
                [datum.get("VarCharValue") for datum in row.get("Data", [])]
                for row in result_set.get("Rows", [])
            ]
        except KeyError as e:
            raise TransportError(f"GetQueryResults response is missing {e}") from e

        return ResultPage(
            column_names=columns,
            rows=rows,
            next_token=response.get("NextToken"),
        )
