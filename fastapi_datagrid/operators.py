# fastapi_datagrid/operators.py

import datetime
import enum
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Enum, String, cast

TRUE_VALUES = {"true", "1", "yes", "on"}
FALSE_VALUES = {"false", "0", "no", "off"}


def is_enum_column(column):
    """Check if a column is an enum type"""
    return isinstance(column.type, Enum)


def is_string_column(column):
    """Check if a column is a string type"""
    return isinstance(column.type, String)


def python_type(column):
    try:
        return column.type.python_type
    except (AttributeError, NotImplementedError):
        return None


def like_operator(column, text: str):
    """Case-insensitive ``LIKE %text%``; non-text columns are cast first."""
    if is_enum_column(column) or not is_string_column(column):
        column = cast(column, String)
    return column.ilike(f"%{text}%")


def coerce_value(column, value: str) -> tuple[Any, bool]:
    """Convert a request string to the column's Python type.

    Returns ``(value, ok)``. ``ok`` is False when the string does not fit the
    column type.
    """
    target = python_type(column)
    if target is None or target is str:
        return value, True
    try:
        if target is bool:
            lowered = value.lower()
            if lowered in TRUE_VALUES:
                return True, True
            if lowered in FALSE_VALUES:
                return False, True
            return value, False
        if isinstance(target, type) and issubclass(target, enum.Enum):
            try:
                return target(value), True
            except ValueError:
                return target[value], True
        if target in (int, float, Decimal, uuid.UUID):
            return target(value), True
        if target in (datetime.date, datetime.datetime, datetime.time):
            return target.fromisoformat(value), True
    except (KeyError, ValueError, TypeError, InvalidOperation):
        return value, False
    return value, True


def eq_operator(column, value: str):
    coerced, ok = coerce_value(column, value)
    if not ok:
        return cast(column, String) == value
    return column == coerced
