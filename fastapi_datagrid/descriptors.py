# fastapi_datagrid/descriptors.py

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Union

from sqlalchemy import ColumnElement

from .errors import ConfigurationError


@dataclass(frozen=True)
class Column:
    """A searchable/filterable/sortable backed by a column.

    ``target`` is either a SQLAlchemy column expression (``User.name``) or an
    attribute name of the query's primary entity. Dotted names such as
    ``"role.name"`` are resolved through relationships.
    """

    target: Any


@dataclass(frozen=True)
class Custom:
    """A searchable/filterable/sortable handled by a callback.

    Search and filter callbacks receive the request value and return a
    SQLAlchemy clause, or ``None`` to contribute nothing. Sort callbacks
    receive the statement and a ``descending`` flag and return the new
    statement.
    """

    fn: Callable[..., Any]


Descriptor = Union[Column, Custom]


def to_descriptor(value: Any, role: str) -> Descriptor:
    if isinstance(value, (Column, Custom)):
        return value
    if isinstance(value, str):
        if not value:
            raise ConfigurationError(f"{role} column name must not be empty")
        return Column(value)
    if isinstance(value, ColumnElement) or hasattr(value, "__clause_element__"):
        return Column(value)
    if callable(value):
        return Custom(value)
    raise ConfigurationError(
        f"{role} must be a column name, a column expression or a callable, got {value!r}"
    )


def to_searchables(searchables: Any) -> tuple[Descriptor, ...]:
    if not isinstance(searchables, (list, tuple)):
        raise ConfigurationError("searchables must be a list or tuple")
    return tuple(to_descriptor(s, "searchable") for s in searchables)


def to_named_descriptors(values: Any, role: str) -> dict[str, Descriptor]:
    if not isinstance(values, Mapping):
        raise ConfigurationError(f"{role}s must be a mapping")
    return {str(name): to_descriptor(value, role) for name, value in values.items()}
