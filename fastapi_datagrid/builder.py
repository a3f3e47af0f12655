# fastapi_datagrid/builder.py

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from fastapi import Query
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import apaginate
from sqlalchemy import and_, asc, desc, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select
from starlette.requests import Request

from .config import GridDefaults
from .core import primary_entity, relationship_loaders, resolve_column
from .descriptors import Column, Custom, Descriptor, to_named_descriptors, to_searchables
from .errors import ConfigurationError
from .export import ExportField, ExportOptions, to_csv
from .operators import eq_operator, like_operator
from .params import read_params
from .validators import (
    parse_sorts,
    validate_filters,
    validate_page,
    validate_per_page,
    validate_search,
    validate_sorts,
)

logger = logging.getLogger(__name__)

QueryFn = Callable[[], Select]


def selects_entity(query: Select) -> bool:
    """True when the query selects exactly one mapped entity, e.g. ``select(User)``."""
    descriptions = query.column_descriptions
    if len(descriptions) != 1:
        return False
    entity = descriptions[0].get("entity")
    return entity is not None and descriptions[0].get("expr") is entity


class GridParams(Params):
    """Page parameters without fastapi-pagination's own size ceiling.

    The grid clamps the size against its configured limits before building
    these.
    """

    size: int = Query(25, ge=1, description="Page size")


@dataclass(frozen=True)
class GridState:
    page: int
    per_page: int
    search: str
    filters: dict[str, str]
    sorts: str
    sort_pairs: list[tuple[str, bool]] = field(default_factory=list)


class Builder:
    """Constrains a query with the pagination, search, filter and sort
    parameters of a request.

    The builder only holds configuration; every call to :meth:`make` reads
    the request again, so one instance can serve any number of requests.
    """

    def __init__(self, defaults: GridDefaults | Mapping[str, Any] | None = None):
        self.defaults = GridDefaults()
        self.query_fn: QueryFn | None = None
        self.searchables: tuple[Descriptor, ...] = ()
        self.filterables: dict[str, Descriptor] = {}
        self.sortables: dict[str, Descriptor] = {}
        self.set_defaults(defaults)

    def set_query_fn(self, fn: QueryFn) -> "Builder":
        """Set the function producing the base query, e.g. ``lambda: select(User)``."""
        if not callable(fn):
            raise ConfigurationError("set_query_fn accepts a function")
        self.query_fn = fn
        return self

    def set_defaults(self, config: GridDefaults | Mapping[str, Any] | None) -> "Builder":
        if isinstance(config, GridDefaults):
            self.defaults = config
        elif isinstance(config, Mapping):
            self.defaults = self.defaults.merge(config)
        elif config is not None:
            logger.warning(
                "Ignoring data grid defaults that are not a mapping",
                extra={"event": {"type": type(config).__name__}},
            )
        return self

    def set_searchables(self, searchables) -> "Builder":
        self.searchables = to_searchables(searchables)
        return self

    def set_filterables(self, filterables) -> "Builder":
        self.filterables = to_named_descriptors(filterables, "filterable")
        return self

    def set_sortables(self, sortables) -> "Builder":
        self.sortables = to_named_descriptors(sortables, "sortable")
        return self

    def state(self, request: Request | Mapping[str, Any]) -> GridState:
        """Read and validate the grid parameters of ``request``."""
        d = self.defaults
        raw = read_params(request, d.query_params)
        sorts = validate_sorts(raw.sort, d.sorts)
        per_page = validate_per_page(
            raw.per_page, d.per_page, d.per_page_limit.min, d.per_page_limit.max
        )
        return GridState(
            page=validate_page(raw.page, d.page, per_page),
            per_page=per_page,
            search=validate_search(raw.search, d.search),
            filters=validate_filters(raw.filter, d.filters),
            sorts=sorts,
            sort_pairs=parse_sorts(sorts, self.sortables),
        )

    def apply_search(self, query: Select, state: GridState, joins: dict | None = None) -> Select:
        if not state.search or not self.searchables:
            return query
        joins = {} if joins is None else joins
        conditions = []
        for searchable in self.searchables:
            if isinstance(searchable, Custom):
                clause = searchable.fn(state.search)
            else:
                column, query = resolve_column(searchable, query, joins)
                clause = like_operator(column, state.search)
            if clause is not None:
                conditions.append(clause)
        if conditions:
            query = query.where(or_(*conditions))
        return query

    def apply_filters(self, query: Select, state: GridState, joins: dict | None = None) -> Select:
        if not state.filters or not self.filterables:
            return query
        joins = {} if joins is None else joins
        conditions = []
        for name, filterable in self.filterables.items():
            if name not in state.filters:
                continue
            value = state.filters[name]
            if isinstance(filterable, Custom):
                clause = filterable.fn(value)
            else:
                column, query = resolve_column(filterable, query, joins)
                clause = eq_operator(column, value)
            if clause is not None:
                conditions.append(clause)
        if conditions:
            query = query.where(and_(*conditions))
        return query

    def apply_sorts(self, query: Select, state: GridState, joins: dict | None = None) -> Select:
        if not state.sorts or not self.sortables:
            return query
        joins = {} if joins is None else joins
        for name, descending in state.sort_pairs:
            sortable = self.sortables[name]
            if isinstance(sortable, Custom):
                query = sortable.fn(query, descending)
            else:
                column, query = resolve_column(sortable, query, joins)
                query = query.order_by(desc(column) if descending else asc(column))
        ignored = len([t for t in state.sorts.split(",") if t.strip()]) - len(state.sort_pairs)
        if ignored:
            logger.debug("Ignored %d unknown sort key(s)", ignored, extra={"event": {"sort": state.sorts}})
        return query

    def build(self, state: GridState) -> Select:
        if self.query_fn is None:
            raise ConfigurationError("No query function set; call set_query_fn first")
        query = self.query_fn()
        joins: dict = {}
        query = self.apply_search(query, state, joins)
        query = self.apply_filters(query, state, joins)
        query = self.apply_sorts(query, state, joins)
        return query

    def check_columns(self) -> "Builder":
        """Resolve every column named by string once against the base query.

        Raises ``ConfigurationError`` for names that do not resolve, so a typo
        fails when the grid is set up rather than on the first request.
        """
        named = [
            d
            for d in (*self.searchables, *self.filterables.values(), *self.sortables.values())
            if isinstance(d, Column) and isinstance(d.target, str)
        ]
        if self.query_fn is None or not named:
            return self
        query = self.query_fn()
        for descriptor in named:
            resolve_column(descriptor, query, {})
        return self

    def make(self, request: Request | Mapping[str, Any]) -> Select:
        """Return the base query constrained by the request's search,
        filters and sorts (search, then filters, then sorts)."""
        return self.build(self.state(request))

    async def paginate(self, request: Request | Mapping[str, Any], session: AsyncSession) -> Page:
        state = self.state(request)
        params = GridParams(page=state.page, size=state.per_page)
        return await apaginate(session, self.build(state), params=params)

    async def export(
        self,
        request: Request | Mapping[str, Any],
        session: AsyncSession,
        export_options: ExportOptions | None = None,
    ) -> str:
        """Return every matching row, unpaginated, as CSV."""
        query = self.make(request)
        fields = export_options.columns() if export_options else []
        if not fields:
            fields = [ExportField(label=c.key, path=c.key) for c in query.selected_columns]

        entity = selects_entity(query)
        if entity:
            # to_csv reads relationships outside the session
            loaders = relationship_loaders(primary_entity(query), [f.path for f in fields])
            if loaders:
                query = query.options(*loaders)
        result = await session.execute(query)
        rows = result.scalars().unique().all() if entity else result.mappings().all()
        return to_csv(rows, fields)
