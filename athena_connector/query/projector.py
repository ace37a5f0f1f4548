import math
from typing import Any, List, NamedTuple, Optional, Sequence

from ..errors import CoercionAnomaly
from ..state import DataType, RawRow, SchemaField, TypedRow


class Coercion(NamedTuple):
    """Outcome of converting one raw cell: the value, and whether it converted cleanly."""

    value: Any
    ok: bool
    raw: Optional[str]


def coerce_value(raw: Optional[str], data_type: str) -> Coercion:
    """
    Converts a raw results cell (always a string or None) to the declared type.

    number  -> float, NaN with ok=False when the text is not numeric
    boolean -> True only for "true" in any case; anything else is False
    other   -> passed through unchanged
    """
    kind = (data_type or DataType.STRING.value).lower()

    if kind == DataType.NUMBER.value:
        # float() also reads Python literal grouping such as "1_000"
        if raw is None or "_" in raw:
            return Coercion(math.nan, False, raw)
        try:
            return Coercion(float(raw), True, raw)
        except ValueError:
            return Coercion(math.nan, False, raw)

    if kind == DataType.BOOLEAN.value:
        return Coercion(raw is not None and raw.lower() == "true", True, raw)

    return Coercion(raw, True, raw)


def project(
    schema: Sequence[SchemaField],
    raw_rows: Sequence[RawRow],
    strict: bool = False,
) -> List[TypedRow]:
    """
    Builds one TypedRow per raw row, with values in schema order.

    In strict mode the first value that cannot be converted raises
    CoercionAnomaly; otherwise it is kept as NaN.
    """
    rows = []
    for raw_row in raw_rows:
        values = []
        for field in schema:
            result = coerce_value(raw_row.get(field.name), field.data_type)
            if strict and not result.ok:
                raise CoercionAnomaly(field.name, result.raw, field.data_type)
            values.append(result.value)
        rows.append(TypedRow(values=values))
    return rows
