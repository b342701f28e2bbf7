"""Property types.

Each type knows its DDL kind name (consumed by ``Dialect.column_type``),
how to turn a raw column value into a Python value and how to turn a
Python value back into a bind parameter.  Full coercion rules live with
the store drivers; these conversions only cover what drivers return
inconsistently (booleans as 0/1, temporal values as ISO strings).
"""

from __future__ import annotations

import datetime
import decimal
from enum import Enum
from typing import Any


class PropertyType(str, Enum):
    """Supported property types."""

    SERIAL = "serial"
    INTEGER = "integer"
    STRING = "string"
    TEXT = "text"
    BOOLEAN = "boolean"
    FLOAT = "float"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"

    @property
    def kind(self) -> str:
        """DDL kind name; ``serial`` columns are integers."""
        return "integer" if self is PropertyType.SERIAL else self.value

    def load(self, value: Any) -> Any:
        """Convert a raw column value into the property's Python value."""
        if value is None:
            return None
        match self:
            case PropertyType.SERIAL | PropertyType.INTEGER:
                if isinstance(value, bool):
                    raise TypeError(f"expected an integer, got {value!r}")
                number = int(value)
                if isinstance(value, (float, decimal.Decimal)) and number != value:
                    raise ValueError(f"{value!r} is not a whole number")
                return number
            case PropertyType.BOOLEAN:
                if isinstance(value, str):
                    return value.strip().lower() in ("1", "t", "true", "y", "yes")
                return bool(value)
            case PropertyType.FLOAT:
                return float(value)
            case PropertyType.DECIMAL:
                return value if isinstance(value, decimal.Decimal) else decimal.Decimal(str(value))
            case PropertyType.DATETIME:
                if isinstance(value, str):
                    return datetime.datetime.fromisoformat(value)
                return value
            case PropertyType.DATE:
                if isinstance(value, datetime.datetime):
                    return value.date()
                if isinstance(value, str):
                    return datetime.date.fromisoformat(value)
                return value
            case _:
                return value if isinstance(value, str) else str(value)

    def dump(self, value: Any) -> Any:
        """Convert a Python value into a bind parameter."""
        if isinstance(value, (datetime.date, datetime.datetime)):
            return value.isoformat()
        if isinstance(value, decimal.Decimal):
            return str(value)
        return value


Serial = PropertyType.SERIAL
Integer = PropertyType.INTEGER
String = PropertyType.STRING
Text = PropertyType.TEXT
Boolean = PropertyType.BOOLEAN
Float = PropertyType.FLOAT
Decimal = PropertyType.DECIMAL
Date = PropertyType.DATE
DateTime = PropertyType.DATETIME


__all__ = [
    "PropertyType",
    "Serial",
    "Integer",
    "String",
    "Text",
    "Boolean",
    "Float",
    "Decimal",
    "Date",
    "DateTime",
]
