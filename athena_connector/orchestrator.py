import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional, Union

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, StateGraph

from .config import RunConfig
from .db.catalog import GlueSchemaResolver
from .db.transport import AthenaTransport, Boto3AthenaTransport
from .errors import BuildError
from .query.builder import QueryBuilder
from .query.poller import ExecutionPoller
from .query.projector import project
from .query.results import ResultFetcher
from .query.schema import SchemaResolver, StaticSchemaResolver
from .query.submitter import ExecutionSubmitter
from .safety import SQLValidator
from .state import FetchResult, PipelineState, QueryRequest, SchemaField


logger = logging.getLogger(__name__)


def request_schema_resolver(request: QueryRequest) -> Optional[SchemaResolver]:
    """
    Uses the request's own field types as the schema when every field has one.
    """
    if not request.fields or any(f.data_type is None for f in request.fields):
        return None
    fields = [SchemaField(name=f.name, data_type=f.data_type) for f in request.fields]
    return StaticSchemaResolver(fields, table_name=request.config_params.table_name)


class AthenaConnector:
    """
    Runs one query per fetch_data() call: resolve schema, build the query,
    submit it, wait for a terminal state, page through the results and
    coerce them to the schema's types.

    The transport and schema resolver default to boto3-backed ones built
    from each request's configParams. A request whose fields all carry a
    dataType is its own schema and skips the Glue lookup.
    """

    def __init__(
        self,
        config: Optional[RunConfig] = None,
        transport: Optional[AthenaTransport] = None,
        schema_resolver: Optional[SchemaResolver] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or RunConfig()
        self.transport = transport
        self.schema_resolver = schema_resolver
        self._sleep = sleep
        self._clock = clock

        self.builder = QueryBuilder(SQLValidator() if self.config.validate_sql else None)

        # Compile Graph
        self.graph = self._build_graph()

    def _build_graph(self):
        workflow = StateGraph(PipelineState)

        workflow.add_node("resolve_schema", self.resolve_schema_node)
        workflow.add_node("build_query", self.build_query_node)
        workflow.add_node("submit", self.submit_node)
        workflow.add_node("await_completion", self.await_completion_node)
        workflow.add_node("fetch_results", self.fetch_results_node)
        workflow.add_node("project", self.project_node)

        workflow.set_entry_point("resolve_schema")
        workflow.add_edge("resolve_schema", "build_query")
        workflow.add_edge("build_query", "submit")
        workflow.add_edge("submit", "await_completion")
        workflow.add_edge("await_completion", "fetch_results")
        workflow.add_edge("fetch_results", "project")
        workflow.add_edge("project", END)

        return workflow.compile()

    def resolve_schema_node(self, state: PipelineState, config: RunnableConfig):
        request = state["request"]
        resolver: SchemaResolver = config["configurable"]["schema_resolver"]
        schema = resolver.resolve(request.field_ids)
        schema_info = resolver.get_schema_dict() if self.config.validate_sql else {}

        if self.config.verbose:
            logger.info(f"[Schema] Resolved {len(schema)} fields")

        return {
            "schema": schema,
            "schema_info": schema_info,
            "debug_trace": [f"[Schema] {', '.join(f'{f.name}:{f.data_type}' for f in schema)}"],
        }

    def build_query_node(self, state: PipelineState):
        params = state["request"].config_params
        query = self.builder.build(
            state["schema"],
            params.table_name,
            params.row_limit,
            schema_info=state.get("schema_info"),
        )

        if self.config.log_sql:
            logger.info(f"[Builder] SQL: {query}")

        return {"query": query, "debug_trace": [f"[Builder] SQL: {query}"]}

    def submit_node(self, state: PipelineState, config: RunnableConfig):
        params = state["request"].config_params
        submitter = ExecutionSubmitter(config["configurable"]["transport"])
        execution_id = submitter.submit(
            params.aws_region,
            params.database_name,
            state["query"],
            params.output_location,
            workgroup=params.workgroup,
        )

        if self.config.verbose:
            logger.info(f"[Submitter] Execution id: {execution_id}")

        return {
            "execution_id": execution_id,
            "debug_trace": [f"[Submitter] Started execution {execution_id}"],
        }

    def await_completion_node(self, state: PipelineState, config: RunnableConfig):
        params = state["request"].config_params
        poller = ExecutionPoller(
            config["configurable"]["transport"],
            config=self.config.polling,
            sleep=self._sleep,
            clock=self._clock,
            verbose=self.config.verbose,
        )
        poller.await_completion(params.aws_region, state["execution_id"])
        return {"debug_trace": [f"[Poller] Execution {state['execution_id']} succeeded"]}

    def fetch_results_node(self, state: PipelineState, config: RunnableConfig):
        params = state["request"].config_params
        fetcher = ResultFetcher(
            config["configurable"]["transport"],
            page_size=self.config.polling.page_size,
        )
        raw_rows = fetcher.fetch_all_rows(params.aws_region, state["execution_id"])

        if self.config.log_results:
            logger.info(f"[Fetcher] {len(raw_rows)} rows")

        return {
            "raw_rows": raw_rows,
            "debug_trace": [f"[Fetcher] {len(raw_rows)} rows"],
        }

    def project_node(self, state: PipelineState):
        rows = project(state["schema"], state["raw_rows"], strict=self.config.strict_types)
        return {"rows": rows, "debug_trace": [f"[Projector] {len(rows)} typed rows"]}

    def _resolver_for(self, request: QueryRequest) -> SchemaResolver:
        if self.schema_resolver is not None:
            return self.schema_resolver
        return request_schema_resolver(request) or GlueSchemaResolver.from_config(
            request.config_params
        )

    def run(self, request: Union[QueryRequest, Mapping[str, Any]]) -> PipelineState:
        """
        Runs the whole pipeline and returns the final state, debug trace included.
        """
        if not isinstance(request, QueryRequest):
            request = QueryRequest.model_validate(request)

        # Fail before any client is created or the catalog is contacted
        if not request.fields:
            raise BuildError("Cannot build a query without fields")

        # Per-run collaborators; nothing is shared between requests
        transport = self.transport or Boto3AthenaTransport.from_config(request.config_params)
        run_config: RunnableConfig = {
            "configurable": {
                "transport": transport,
                "schema_resolver": self._resolver_for(request),
            }
        }

        initial_state: PipelineState = {
            "request": request,
            "debug_trace": ["[Run] Starting fetch."],
        }
        return self.graph.invoke(initial_state, config=run_config)

    def fetch_data(self, request: Union[QueryRequest, Mapping[str, Any]]) -> FetchResult:
        """
        Main entry point: one query, executed synchronously.
        """
        final_state = self.run(request)
        return FetchResult(
            fields=final_state["schema"],
            rows=final_state["rows"],
            query=final_state.get("query"),
            execution_id=final_state.get("execution_id"),
        )


def fetch_data(request: Union[QueryRequest, Mapping[str, Any]], **kwargs) -> Dict[str, Any]:
    """
    Convenience wrapper returning the caller-facing {"schema", "rows"} mapping.
    Keyword arguments are passed to AthenaConnector.
    """
    return AthenaConnector(**kwargs).fetch_data(request).to_response()
