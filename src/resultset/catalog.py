"""
Column catalog: name to ordinal lookup over the result schema.
"""
import logging
from typing import Any

from resultset.exceptions import IndexOutOfRange, UnknownColumn
from resultset.types import Column, columns_from_schema

logger = logging.getLogger(__name__)


class ColumnCatalog:
    """Ordered columns plus a case-insensitive name to ordinal map.

    Ordinals are 1-based. When two columns share a name (ignoring case)
    the first one owns the name; later duplicates are reachable only by
    ordinal.
    """

    def __init__(self, schema: Any, query_id: str | None = None) -> None:
        self.columns: list[Column] = columns_from_schema(schema)
        self.query_id = query_id
        self._field_map: dict[str, int] = {}
        for ordinal, column in enumerate(self.columns, start=1):
            key = column.name.lower()
            if key in self._field_map:
                logger.debug(f'Column {column.name!r} at {ordinal} shadowed by '
                             f'ordinal {self._field_map[key]}')
                continue
            self._field_map[key] = ordinal

    def __len__(self) -> int:
        return len(self.columns)

    def resolve(self, name: str | None) -> int:
        """Return the 1-based ordinal for a column name (case-insensitive)."""
        if name is None:
            raise UnknownColumn(None, self.names(), self.query_id)
        ordinal = self._field_map.get(name.lower())
        if ordinal is None:
            raise UnknownColumn(name, self.names(), self.query_id)
        return ordinal

    def names(self) -> list[str]:
        """Lookup keys in ordinal order."""
        return list(self._field_map)

    def ordinal_count(self) -> int:
        return len(self.columns)

    def check_ordinal(self, ordinal: int) -> int:
        if isinstance(ordinal, bool) or not 1 <= ordinal <= len(self.columns):
            raise IndexOutOfRange(ordinal, len(self.columns), self.query_id)
        return ordinal

    def column(self, ordinal: int) -> Column:
        return self.columns[self.check_ordinal(ordinal) - 1]

    def declared_type(self, ordinal: int) -> str | None:
        """Declared wire type name of the column at ``ordinal``."""
        return self.column(ordinal).type_name

    def python_type(self, ordinal: int) -> type:
        return self.column(ordinal).python_type
