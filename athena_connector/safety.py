from __future__ import annotations

from typing import Dict, List, Tuple

import sqlglot
from sqlglot import exp


class SQLValidator:
    def __init__(self, max_tables: int = 1) -> None:
        """
        Read-only and catalog validator for generated SELECT statements.

        max_tables bounds how many tables a statement may reference; the
        connector only ever reads from one.
        """
        self.max_tables = max_tables

    def validate(
        self,
        sql: str,
        dialect: str = "athena",
        schema_info: Dict[str, List[str]] | None = None,
    ) -> Tuple[bool, str]:
        """
        Validates SQL syntax, strict read-only safety, and optionally that every
        table and column exists in the catalog.

        schema_info: { table_name: [col1, col2, ...] }
        Returns: (is_valid, error_message)
        """
        try:
            statements = [s for s in sqlglot.parse(sql, read=dialect) if s is not None]
        except Exception as e:
            return False, f"Syntax Error: {str(e)}"

        if len(statements) != 1:
            return False, f"Security Violation: Expected one statement, got {len(statements)}."
        parsed = statements[0]

        # 1. Safety Check: only a plain SELECT, no mutations or DDL
        if not isinstance(parsed, exp.Select):
            return False, "Security Violation: Only SELECT statements are allowed."

        forbidden_types = []
        for type_name in [
            "Drop",
            "Delete",
            "Update",
            "Insert",
            "Create",
            "Merge",
            "Commit",
            "Rollback",
            "AlterTable",
            "Alter",
            "TruncateTable",
        ]:
            if hasattr(exp, type_name):
                forbidden_types.append(getattr(exp, type_name))

        if forbidden_types and parsed.find(*forbidden_types):
            return (
                False,
                "Security Violation: Query contains forbidden mutation or DDL statements.",
            )

        # 2. Complexity heuristics
        tables = list(parsed.find_all(exp.Table))
        if len(tables) > self.max_tables:
            return (
                False,
                f"Safety Violation: Query references too many tables ({len(tables)} > {self.max_tables}).",
            )

        # 3. Catalog Verification (if provided)
        if schema_info:
            # Athena identifiers are case-insensitive
            schema_lower = {
                k.lower(): [c.lower() for c in v] for k, v in schema_info.items()
            }

            query_tables = []
            for table in tables:
                t_name = table.name.lower()
                if t_name not in schema_lower:
                    return False, f"Schema Error: Table '{t_name}' does not exist."
                query_tables.append(t_name)

            for column in parsed.find_all(exp.Column):
                col_name = column.name.lower()
                if not any(col_name in schema_lower[t] for t in query_tables):
                    return (
                        False,
                        f"Schema Error: Column '{col_name}' not found in tables {query_tables}.",
                    )

        return True, ""
