# fastapi_datagrid/export.py

import csv
import enum
from dataclasses import dataclass, field
from io import StringIO
from typing import Any, Iterable, Mapping, Sequence

from starlette.responses import Response

from .errors import ConfigurationError


@dataclass(frozen=True)
class ExportField:
    label: str
    path: str


@dataclass(frozen=True)
class ExportOptions:
    """Columns of a CSV export.

    Each entry of ``fields`` is an attribute path (``"role.name"``), a
    ``(label, path)`` pair, a ``{"label": ..., "value": ...}`` mapping or an
    ``ExportField``.
    """

    fields: Sequence[Any] = field(default_factory=tuple)

    def columns(self) -> list[ExportField]:
        if isinstance(self.fields, (str, bytes)) or not isinstance(self.fields, Sequence):
            raise ConfigurationError("export fields must be a list")
        return [to_export_field(f) for f in self.fields]


def to_export_field(value: Any) -> ExportField:
    if isinstance(value, ExportField):
        return value
    if isinstance(value, str):
        return ExportField(label=value, path=value)
    if isinstance(value, Mapping) and "value" in value:
        path = str(value["value"])
        return ExportField(label=str(value.get("label", path)), path=path)
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return ExportField(label=str(value[0]), path=str(value[1]))
    raise ConfigurationError(f"Invalid export field: {value!r}")


def resolve_path(row: Any, path: str) -> Any:
    current = row
    for key in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(key)
        else:
            current = getattr(current, key, None)
    return current


def prepare_csv_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        return value.value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def to_csv(rows: Iterable[Any], fields: Sequence[ExportField]) -> str:
    output_buffer = StringIO()
    writer = csv.writer(output_buffer)
    writer.writerow([f.label for f in fields])
    for row in rows:
        writer.writerow([prepare_csv_value(resolve_path(row, f.path)) for f in fields])
    return output_buffer.getvalue()


def csv_response(content: str, filename: str = "export.csv") -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
