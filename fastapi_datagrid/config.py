# fastapi_datagrid/config.py

from functools import lru_cache
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class PerPageLimit(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    min: int = 5
    max: int = 100

    @model_validator(mode="after")
    def check_bounds(self) -> "PerPageLimit":
        if self.min < 1:
            raise ValueError("per_page_limit.min must be at least 1")
        if self.min > self.max:
            raise ValueError("per_page_limit.min must not exceed per_page_limit.max")
        return self


class QueryParamNames(BaseModel):
    """Names of the request parameters the grid reads."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    page: str = "page"
    per_page: str = "perPage"
    search: str = "search"
    filter: str = "filter"
    sort: str = "sort"


class GridDefaults(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=25, ge=1)
    per_page_limit: PerPageLimit = PerPageLimit()
    search: str = ""
    filters: dict[str, str] = {}
    sorts: str = ""
    query_params: QueryParamNames = QueryParamNames()

    def merge(self, overrides: Mapping[str, Any] | None) -> "GridDefaults":
        """Return new defaults with ``overrides`` applied on top.

        Nested ``per_page_limit`` and ``query_params`` mappings are merged key
        by key, so overriding ``{"per_page_limit": {"max": 50}}`` keeps the
        current minimum.
        """
        if not overrides:
            return self
        data = self.model_dump()
        for key, value in overrides.items():
            if isinstance(value, BaseModel):
                value = value.model_dump()
            if isinstance(data.get(key), dict) and isinstance(value, Mapping) and key != "filters":
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        try:
            return GridDefaults.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid data grid defaults: {exc}") from exc


class DataGridSettings(BaseSettings):
    per_page: int = 25
    per_page_min: int = 5
    per_page_max: int = 100
    search: str = ""
    filters: dict[str, str] = {}
    sorts: str = ""

    page_param: str = "page"
    per_page_param: str = "perPage"
    search_param: str = "search"
    filter_param: str = "filter"
    sort_param: str = "sort"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DATAGRID_", extra="ignore")

    def to_defaults(self) -> GridDefaults:
        try:
            return GridDefaults(
                per_page=self.per_page,
                per_page_limit=PerPageLimit(min=self.per_page_min, max=self.per_page_max),
                search=self.search,
                filters=self.filters,
                sorts=self.sorts,
                query_params=QueryParamNames(
                    page=self.page_param,
                    per_page=self.per_page_param,
                    search=self.search_param,
                    filter=self.filter_param,
                    sort=self.sort_param,
                ),
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid DATAGRID_* settings: {exc}") from exc


@lru_cache
def get_settings() -> DataGridSettings:
    return DataGridSettings()
