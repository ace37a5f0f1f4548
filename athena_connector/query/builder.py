import logging
from typing import Dict, List, Optional, Sequence, Union

from ..errors import BuildError
from ..safety import SQLValidator
from ..state import SchemaField

logger = logging.getLogger(__name__)


def _quote(identifier: str, kind: str) -> str:
    # Identifiers are wrapped, never escaped, so an embedded quote cannot be represented.
    if not identifier:
        raise BuildError(f"Empty {kind} name")
    if '"' in identifier:
        raise BuildError(f"{kind.capitalize()} name contains a double quote: {identifier!r}")
    return f'"{identifier}"'


def resolve_row_limit(row_limit: Optional[Union[int, str]]) -> Optional[int]:
    """
    Turns a configured row limit into an int, or None when no LIMIT applies.
    Absent, blank and zero limits all mean "no limit".
    """
    if row_limit is None or isinstance(row_limit, bool):
        return None
    if isinstance(row_limit, str):
        row_limit = row_limit.strip()
        if not row_limit:
            return None
    try:
        limit = int(row_limit)
    except (TypeError, ValueError) as e:
        raise BuildError(f"Row limit must be an integer, got {row_limit!r}") from e
    if limit < 0:
        raise BuildError(f"Row limit must not be negative, got {limit}")
    return limit or None


def build_query(
    fields: Sequence[Union[SchemaField, str]],
    table_name: str,
    row_limit: Optional[Union[int, str]] = None,
) -> str:
    """
    Builds `SELECT "c1", "c2" FROM "table" [LIMIT n]` for the requested fields.
    """
    if not fields:
        raise BuildError("Cannot build a query without fields")

    names = [f if isinstance(f, str) else f.name for f in fields]
    columns = [_quote(name, "column") for name in names]
    query = f"SELECT {', '.join(columns)} FROM {_quote(table_name, 'table')}"

    limit = resolve_row_limit(row_limit)
    if limit:
        query += f" LIMIT {limit}"

    return query


class QueryBuilder:
    def __init__(self, validator: Optional[SQLValidator] = None):
        self.validator = validator

    def build(
        self,
        fields: Sequence[Union[SchemaField, str]],
        table_name: str,
        row_limit: Optional[Union[int, str]] = None,
        schema_info: Optional[Dict[str, List[str]]] = None,
    ) -> str:
        """
        Builds the query and, when a validator is configured, checks it is a
        single read-only SELECT over known catalog columns.
        Raises BuildError before anything is sent to the engine.
        """
        query = build_query(fields, table_name, row_limit)

        if self.validator is not None:
            is_valid, error = self.validator.validate(query, schema_info=schema_info)
            if not is_valid:
                logger.error(f"Generated query rejected: {error}")
                raise BuildError(error)

        return query
