# fastapi_datagrid/datagrid.py

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from fastapi_pagination import Page
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select
from starlette.requests import Request

from .builder import Builder
from .config import GridDefaults
from .export import ExportOptions


@dataclass
class GridConfig:
    """Everything one list endpoint needs to know.

    Example::

        users_grid = GridConfig(
            query=lambda: select(User),
            searchable=["name", "email"],
            filterable={"status": "status", "role": "role.name"},
            sortable={"name": User.name, "age": User.age},
            export_options=ExportOptions(fields=["name", ("Role", "role.name")]),
        )
    """

    query: Callable[[], Select]
    defaults: Mapping[str, Any] | None = None
    searchable: Sequence[Any] = field(default_factory=list)
    filterable: Mapping[str, Any] = field(default_factory=dict)
    sortable: Mapping[str, Any] = field(default_factory=dict)
    export_options: ExportOptions | None = None


class DataGrid:
    """Application-wide entry point holding the default grid settings."""

    def __init__(self, defaults: GridDefaults | None = None):
        self.defaults = defaults or GridDefaults()

    def build(self, config: GridConfig) -> Builder:
        return (
            Builder(self.defaults)
            .set_query_fn(config.query)
            .set_defaults(config.defaults)
            .set_searchables(config.searchable)
            .set_filterables(config.filterable)
            .set_sortables(config.sortable)
            .check_columns()
        )

    def make(self, config: GridConfig, request: Request | Mapping[str, Any]) -> Select:
        return self.build(config).make(request)

    async def paginate(
        self, config: GridConfig, request: Request | Mapping[str, Any], session: AsyncSession
    ) -> Page:
        """Return the sorted/filtered rows of the requested page."""
        return await self.build(config).paginate(request, session)

    async def export(
        self, config: GridConfig, request: Request | Mapping[str, Any], session: AsyncSession
    ) -> str:
        """Return all sorted/filtered rows as CSV."""
        return await self.build(config).export(request, session, config.export_options)
