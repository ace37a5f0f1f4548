import operator
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field

from .config import ConnectorConfig


class DataType(str, Enum):
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"


class SchemaField(BaseModel):
    """A named output column and the scalar type its values are coerced to."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(description="Column identifier")
    data_type: str = Field(
        default=DataType.STRING.value,
        alias="dataType",
        description="Declared type: number, boolean or string (case-insensitive)",
    )


class FieldRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    data_type: Optional[str] = Field(default=None, alias="dataType")


class QueryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    fields: List[FieldRequest]
    config_params: ConnectorConfig = Field(alias="configParams")

    @property
    def field_ids(self) -> List[str]:
        return [f.name for f in self.fields]


class PollState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @classmethod
    def from_engine(cls, state: str) -> "PollState":
        """
        Maps an engine status string onto the poller's states.
        Anything that is not terminal (QUEUED, RUNNING, unknown) is pending.
        """
        normalized = (state or "").strip().lower()
        for member in (cls.SUCCEEDED, cls.FAILED, cls.CANCELLED):
            if normalized == member.value:
                return member
        return cls.PENDING


class ExecutionStatus(BaseModel):
    state: str
    reason: Optional[str] = None


class ResultPage(BaseModel):
    column_names: List[str] = Field(default_factory=list)
    rows: List[List[Optional[str]]] = Field(default_factory=list)
    next_token: Optional[str] = None


RawRow = Dict[str, Optional[str]]


class TypedRow(BaseModel):
    values: List[Any]


class FetchResult(BaseModel):
    fields: List[SchemaField]
    rows: List[TypedRow]
    query: Optional[str] = None
    execution_id: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        """Shape returned to callers: {"schema": [...], "rows": [{"values": [...]}]}."""
        return {
            "schema": [f.model_dump(by_alias=True) for f in self.fields],
            "rows": [row.model_dump() for row in self.rows],
        }


class PipelineState(TypedDict, total=False):
    """
    State passed between the stages of one fetch.
    """

    # Input
    request: QueryRequest

    # Stage outputs
    schema: List[SchemaField]
    schema_info: Dict[str, List[str]]  # catalog columns per table, for validation
    query: str
    execution_id: str
    raw_rows: List[RawRow]
    rows: List[TypedRow]

    # Debug / tracing
    debug_trace: Annotated[List[str], operator.add]
