# fastapi_datagrid/core.py

from typing import Any, Iterable, Tuple

from sqlalchemy.orm import RelationshipProperty, aliased, selectinload
from sqlalchemy.sql import Select

from .descriptors import Column
from .errors import ConfigurationError


def primary_entity(query: Select) -> Any:
    descriptions = query.column_descriptions
    entity = descriptions[0].get("entity") if descriptions else None
    if entity is None:
        raise ConfigurationError(
            "Column names need a query over a mapped entity; pass column expressions instead"
        )
    return entity


def resolve_and_join_column(model, nested_keys: list[str], query: Select, joins: dict) -> Tuple[Any, Select]:
    current_model = model

    # joins are keyed by relationship path, so owner.name and creator.name
    # get their own alias even when both point at the same model
    for depth, attr in enumerate(nested_keys):
        attribute = getattr(current_model, attr, None)
        prop = getattr(attribute, "property", None)

        if isinstance(prop, RelationshipProperty):
            path = tuple(nested_keys[: depth + 1])
            if path not in joins:
                alias = aliased(prop.mapper.class_)
                joins[path] = alias
                query = query.outerjoin(alias, attribute)
            current_model = joins[path]
        elif attribute is not None:
            return attribute, query
        else:
            raise ConfigurationError(
                f"Invalid column: {'.'.join(nested_keys)}. "
                f"Could not resolve attribute '{attr}' on '{getattr(current_model, '__name__', current_model)}'."
            )
    raise ConfigurationError(
        f"Column '{'.'.join(nested_keys)}' names a relationship, not a column."
    )


def resolve_column(descriptor: Column, query: Select, joins: dict) -> Tuple[Any, Select]:
    """Return the SQL column a ``Column`` descriptor points at.

    Expressions are used as given; names are looked up on the query's primary
    entity, joining relationships on the way for dotted names.
    """
    if not isinstance(descriptor.target, str):
        return descriptor.target, query
    return resolve_and_join_column(
        primary_entity(query), descriptor.target.split("."), query, joins
    )


def relationship_loaders(model, paths: Iterable[str]) -> list:
    """Build ``selectinload`` options for the relationships along dotted paths.

    ``"owner.role.name"`` on ``Ticket`` loads ``Ticket.owner`` and then
    ``User.role``. Segments that are not relationships end the chain.
    """
    loaders: dict[tuple, Any] = {}
    for path in paths:
        current_model, loader, keys = model, None, []
        for attr in path.split(".")[:-1]:
            attribute = getattr(current_model, attr, None)
            prop = getattr(attribute, "property", None)
            if not isinstance(prop, RelationshipProperty):
                break
            keys.append(attr)
            loader = selectinload(attribute) if loader is None else loader.selectinload(attribute)
            current_model = prop.mapper.class_
        if loader is not None:
            loaders[tuple(keys)] = loader
    return list(loaders.values())
