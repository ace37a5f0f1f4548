"""Shared fixtures: an in-memory Athena transport and sample requests."""

from typing import List, Optional

import pytest

from athena_connector.db.transport import AthenaTransport
from athena_connector.state import ExecutionStatus, ResultPage


class FakeTransport(AthenaTransport):
    """Scripted transport that records every call it receives."""

    def __init__(
        self,
        execution_id: str = "Q1",
        statuses: Optional[List[ExecutionStatus]] = None,
        pages: Optional[List[ResultPage]] = None,
    ):
        self.execution_id = execution_id
        self.statuses = list(statuses or [ExecutionStatus(state="succeeded")])
        self.pages = list(pages or [])
        self.calls: List[tuple] = []

    def start_query_execution(
        self, region, client_token, database, query, output_location, workgroup=None
    ):
        self.calls.append(
            ("start", region, client_token, database, query, output_location, workgroup)
        )
        return self.execution_id

    def get_query_execution(self, region, execution_id):
        self.calls.append(("status", region, execution_id))
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]

    def get_query_results(self, region, execution_id, next_token=None, max_results=None):
        self.calls.append(("results", region, execution_id, next_token, max_results))
        return self.pages.pop(0)

    def calls_of(self, kind: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture
def config_params() -> dict:
    return {
        "tableName": "t",
        "rowLimit": "10",
        "awsAccessKeyId": "AKIAEXAMPLE",
        "awsSecretAccessKey": "secret",
        "awsRegion": "us-east-1",
        "databaseName": "analytics",
        "outputLocation": "s3://bucket/results/",
    }


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested delays instead of blocking."""
    delays: List[float] = []

    def sleep(seconds: float) -> None:
        delays.append(seconds)

    sleep.delays = delays
    return sleep
