# fastapi_datagrid/dependencies.py

from functools import lru_cache
from typing import Any, AsyncIterator, Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .datagrid import DataGrid, GridConfig

GetDb = Callable[[], AsyncIterator[AsyncSession]]


@lru_cache
def get_datagrid() -> DataGrid:
    return DataGrid(get_settings().to_defaults())


def DataGridQuery(config: GridConfig, grid: DataGrid | None = None) -> Any:
    """Dependency yielding the endpoint's constrained ``Select``.

    The configuration is validated here, when the route is declared.
    """
    builder = (grid or get_datagrid()).build(config)

    def wrapper(request: Request):
        return builder.make(request)
    return Depends(wrapper)


def DataGridPage(config: GridConfig, get_db: GetDb, grid: DataGrid | None = None) -> Any:
    builder = (grid or get_datagrid()).build(config)

    async def wrapper(request: Request, db: AsyncSession = Depends(get_db)):
        return await builder.paginate(request, db)
    return Depends(wrapper)


def DataGridExport(config: GridConfig, get_db: GetDb, grid: DataGrid | None = None) -> Any:
    builder = (grid or get_datagrid()).build(config)

    async def wrapper(request: Request, db: AsyncSession = Depends(get_db)):
        return await builder.export(request, db, config.export_options)
    return Depends(wrapper)
