"""fastapi-datagrid: request-driven search, filter, sort, pagination and CSV
export for FastAPI + SQLAlchemy list endpoints."""

from .builder import Builder, GridParams, GridState  # noqa: F401
from .config import DataGridSettings, GridDefaults, PerPageLimit, QueryParamNames, get_settings  # noqa: F401
from .datagrid import DataGrid, GridConfig  # noqa: F401
from .dependencies import DataGridExport, DataGridPage, DataGridQuery, get_datagrid  # noqa: F401
from .descriptors import Column, Custom  # noqa: F401
from .errors import ConfigurationError  # noqa: F401
from .export import ExportField, ExportOptions, csv_response  # noqa: F401

__all__ = [
    "Builder",
    "DataGrid",
    "GridConfig",
    "GridState",
    "GridParams",
    # Dependencies
    "get_datagrid",
    "DataGridQuery",
    "DataGridPage",
    "DataGridExport",
    # Configuration
    "DataGridSettings",
    "GridDefaults",
    "PerPageLimit",
    "QueryParamNames",
    "get_settings",
    # Descriptors
    "Column",
    "Custom",
    # Export
    "ExportField",
    "ExportOptions",
    "csv_response",
    "ConfigurationError",
]
