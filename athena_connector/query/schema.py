from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import SchemaError
from ..state import SchemaField


class SchemaResolver(ABC):
    @abstractmethod
    def resolve(self, field_ids: Sequence[str]) -> List[SchemaField]:
        """Return the schema of the requested fields, in request order."""
        pass

    @abstractmethod
    def get_schema_dict(self) -> Dict[str, List[str]]:
        """Return the catalog as a mapping of table names to column lists."""
        pass


def pick_fields(available: Iterable[SchemaField], field_ids: Sequence[str]) -> List[SchemaField]:
    """
    Selects fields by id, keeping the order of field_ids.
    Raises SchemaError naming every id that is not available.
    """
    by_name = {f.name: f for f in available}
    missing = [fid for fid in field_ids if fid not in by_name]
    if missing:
        raise SchemaError(f"Unknown field(s): {', '.join(missing)}")
    return [by_name[fid] for fid in field_ids]


class StaticSchemaResolver(SchemaResolver):
    """
    Resolver over a schema that is already known, e.g. the typed fields of
    the request itself.
    """

    def __init__(self, fields: Sequence[SchemaField], table_name: Optional[str] = None):
        self.fields = list(fields)
        self.table_name = table_name

    def resolve(self, field_ids: Sequence[str]) -> List[SchemaField]:
        return pick_fields(self.fields, field_ids)

    def get_schema_dict(self) -> Dict[str, List[str]]:
        if not self.table_name:
            return {}
        return {self.table_name: [f.name for f in self.fields]}
