"""End-to-end tests for the fetch pipeline over a fake transport."""

import math
import uuid
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from athena_connector import AthenaConnector, RunConfig, fetch_data
from athena_connector.config import PollingConfig
from athena_connector.errors import BuildError, QueryCancelled, QueryFailed, SchemaError
from athena_connector.query.schema import StaticSchemaResolver
from athena_connector.state import ExecutionStatus, QueryRequest, ResultPage, SchemaField

from .conftest import FakeTransport


@pytest.fixture
def request_data(config_params):
    return {"fields": [{"name": "id", "dataType": "string"}], "configParams": config_params}


def single_page(rows, columns=("id",)):
    return [ResultPage(column_names=list(columns), rows=rows)]


class TestFetchData:
    def test_end_to_end(self, request_data, no_sleep):
        transport = FakeTransport(
            execution_id="Q1",
            statuses=[ExecutionStatus(state="SUCCEEDED")],
            pages=single_page([["id"], ["1"], ["2"]]),
        )
        connector = AthenaConnector(transport=transport, sleep=no_sleep)

        result = connector.fetch_data(request_data)

        assert result.query == 'SELECT "id" FROM "t" LIMIT 10'
        assert result.execution_id == "Q1"
        assert result.to_response() == {
            "schema": [{"name": "id", "dataType": "string"}],
            "rows": [{"values": ["1"]}, {"values": ["2"]}],
        }

        start = transport.calls_of("start")[0]
        _, region, token, database, query, output_location, workgroup = start
        assert (region, database, output_location) == ("us-east-1", "analytics", "s3://bucket/results/")
        assert query == 'SELECT "id" FROM "t" LIMIT 10'
        assert uuid.UUID(token)
        assert workgroup is None
        assert [c[0] for c in transport.calls] == ["start", "status", "results"]

    def test_fresh_token_per_call(self, request_data, no_sleep):
        tokens = []
        for _ in range(2):
            transport = FakeTransport(pages=single_page([["id"], ["1"]]))
            AthenaConnector(transport=transport, sleep=no_sleep).fetch_data(request_data)
            tokens.append(transport.calls_of("start")[0][2])
        assert tokens[0] != tokens[1]

    def test_typed_projection_through_pipeline(self, config_params, no_sleep):
        request = {
            "fields": [
                {"name": "amount", "dataType": "number"},
                {"name": "paid", "dataType": "boolean"},
            ],
            "configParams": {**config_params, "rowLimit": None},
        }
        transport = FakeTransport(
            statuses=[ExecutionStatus(state="RUNNING"), ExecutionStatus(state="SUCCEEDED")],
            pages=single_page(
                [["amount", "paid"], ["3.5", "TRUE"], ["x", "false"]], columns=("amount", "paid")
            ),
        )
        result = AthenaConnector(transport=transport, sleep=no_sleep).fetch_data(request)

        assert result.query == 'SELECT "amount", "paid" FROM "t"'
        assert result.rows[0].values == [3.5, True]
        assert math.isnan(result.rows[1].values[0])
        assert result.rows[1].values[1] is False
        assert no_sleep.delays == [3.0]

    def test_schema_resolver_supplies_types(self, config_params, no_sleep):
        resolver = StaticSchemaResolver(
            [SchemaField(name="id"), SchemaField(name="n", data_type="number")], table_name="t"
        )
        request = {"fields": [{"name": "n"}], "configParams": config_params}
        transport = FakeTransport(pages=single_page([["n"], ["7"]], columns=("n",)))

        result = AthenaConnector(
            transport=transport, schema_resolver=resolver, sleep=no_sleep
        ).fetch_data(request)

        assert result.fields == [SchemaField(name="n", data_type="number")]
        assert result.rows[0].values == [7.0]

    def test_accepts_query_request_model(self, request_data, no_sleep):
        transport = FakeTransport(pages=single_page([["id"], ["1"]]))
        request = QueryRequest.model_validate(request_data)
        result = AthenaConnector(transport=transport, sleep=no_sleep).fetch_data(request)
        assert result.rows[0].values == ["1"]

    def test_debug_trace(self, request_data, no_sleep):
        transport = FakeTransport(pages=single_page([["id"], ["1"]]))
        state = AthenaConnector(transport=transport, sleep=no_sleep).run(request_data)

        trace = state["debug_trace"]
        assert trace[0] == "[Run] Starting fetch."
        assert any(entry.startswith("[Builder] SQL:") for entry in trace)
        assert trace[-1] == "[Projector] 1 typed rows"

    def test_module_level_fetch_data(self, request_data, no_sleep):
        transport = FakeTransport(pages=single_page([["id"], ["a"]]))
        response = fetch_data(request_data, transport=transport, sleep=no_sleep)
        assert response["rows"] == [{"values": ["a"]}]


class TestFetchDataErrors:
    def test_empty_fields_fail_before_network(self, config_params, no_sleep):
        transport = FakeTransport()
        resolver = StaticSchemaResolver([SchemaField(name="id")], table_name="t")
        connector = AthenaConnector(transport=transport, schema_resolver=resolver, sleep=no_sleep)

        with pytest.raises(BuildError):
            connector.fetch_data({"fields": [], "configParams": config_params})
        assert transport.calls == []

    def test_empty_fields_skip_glue_catalog(self, config_params, no_sleep):
        transport = FakeTransport()
        connector = AthenaConnector(transport=transport, sleep=no_sleep)

        with patch("athena_connector.db.catalog.boto3.client") as client_factory:
            with pytest.raises(BuildError, match="without fields"):
                connector.fetch_data({"fields": [], "configParams": config_params})

        client_factory.assert_not_called()
        client_factory.return_value.get_table.assert_not_called()
        assert transport.calls == []

    def test_unknown_field_fails_before_network(self, config_params, no_sleep):
        transport = FakeTransport()
        resolver = StaticSchemaResolver([SchemaField(name="id")], table_name="t")
        connector = AthenaConnector(transport=transport, schema_resolver=resolver, sleep=no_sleep)

        with pytest.raises(SchemaError):
            connector.fetch_data({"fields": [{"name": "missing"}], "configParams": config_params})
        assert transport.calls == []

    def test_query_failure_aborts_without_fetching(self, request_data, no_sleep):
        transport = FakeTransport(
            statuses=[ExecutionStatus(state="FAILED", reason="HIVE_BAD_DATA")]
        )
        with pytest.raises(QueryFailed, match="HIVE_BAD_DATA"):
            AthenaConnector(transport=transport, sleep=no_sleep).fetch_data(request_data)
        assert transport.calls_of("results") == []

    def test_cancelled(self, request_data, no_sleep):
        transport = FakeTransport(statuses=[ExecutionStatus(state="CANCELLED")])
        with pytest.raises(QueryCancelled):
            AthenaConnector(transport=transport, sleep=no_sleep).fetch_data(request_data)

    def test_strict_types(self, config_params, no_sleep):
        from athena_connector.errors import CoercionAnomaly

        request = {"fields": [{"name": "n", "dataType": "number"}], "configParams": config_params}
        transport = FakeTransport(pages=single_page([["n"], ["abc"]], columns=("n",)))
        connector = AthenaConnector(
            RunConfig(strict_types=True), transport=transport, sleep=no_sleep
        )
        with pytest.raises(CoercionAnomaly):
            connector.fetch_data(request)

    def test_polling_ceiling_from_config(self, request_data, no_sleep):
        from athena_connector.errors import PollTimeout

        transport = FakeTransport(statuses=[ExecutionStatus(state="RUNNING")])
        connector = AthenaConnector(
            RunConfig(polling=PollingConfig(max_polls=2)), transport=transport, sleep=no_sleep
        )
        with pytest.raises(PollTimeout):
            connector.fetch_data(request_data)
        assert len(transport.calls_of("status")) == 2

    def test_invalid_request_mapping(self, no_sleep):
        with pytest.raises(ValidationError):
            AthenaConnector(transport=FakeTransport(), sleep=no_sleep).fetch_data(
                {"fields": [{"name": "id"}], "configParams": {"tableName": "t"}}
            )
