# fastapi_datagrid/params.py

import json
from dataclasses import dataclass
from typing import Any, Mapping

from starlette.requests import Request

from .config import QueryParamNames


@dataclass(frozen=True)
class RawParams:
    """The five grid parameters exactly as the client sent them."""

    page: Any = None
    per_page: Any = None
    search: Any = None
    filter: Any = None
    sort: Any = None


def parse_filter_param(name: str, query: Mapping[str, Any]) -> Any:
    """Collect the filter map from ``filter[key]=value`` pairs or a JSON object.

    Bracket keys win over a plain ``filter`` value. A plain value that is not
    a JSON object is returned unparsed so the validator falls back to the
    default filters.
    """
    prefix = f"{name}["
    bracketed = {
        key[len(prefix):-1]: value
        for key, value in query.items()
        if key.startswith(prefix) and key.endswith("]") and len(key) > len(prefix) + 1
    }
    if bracketed:
        return bracketed

    raw = query.get(name)
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def read_params(source: Request | Mapping[str, Any], names: QueryParamNames) -> RawParams:
    """Read only the configured grid parameters from a request or mapping."""
    query = source.query_params if isinstance(source, Request) else source
    return RawParams(
        page=query.get(names.page),
        per_page=query.get(names.per_page),
        search=query.get(names.search),
        filter=parse_filter_param(names.filter, query),
        sort=query.get(names.sort),
    )
