"""Request-scoped counters and the development diagnostics overlay."""

from __future__ import annotations

import html
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

__all__ = [
    "DatabaseCall",
    "DiagnosticsContext",
    "format_elapsed",
    "render_diagnostics",
]


@dataclass(frozen=True)
class DatabaseCall:
    """A query observed while serving the current request."""

    query: str
    params: Sequence[Any] = ()
    affected_rows: int | None = None
    origin: str = ""


@dataclass
class DiagnosticsContext:
    """Counters describing one request, handed to the render call."""

    method: str = "GET"
    status_code: int = 200
    route_name: str = ""
    controllers: list[tuple[str, str]] = field(default_factory=list)
    database_calls: list[DatabaseCall] = field(default_factory=list)
    started_at: float = field(default_factory=time.perf_counter)
    clock: Callable[[], float] = field(default=time.perf_counter, repr=False)

    def record_query(
        self,
        query: str,
        params: Sequence[Any] = (),
        *,
        affected_rows: int | None = None,
        origin: str = "",
    ) -> DatabaseCall:
        call = DatabaseCall(query=query, params=tuple(params), affected_rows=affected_rows, origin=origin)
        self.database_calls.append(call)
        return call

    def record_controller(self, controller: str, method: str) -> None:
        self.controllers.append((controller, method))

    @property
    def database_call_count(self) -> int:
        return len(self.database_calls)

    def elapsed(self) -> float:
        return max(0.0, self.clock() - self.started_at)


def format_elapsed(seconds: float) -> str:
    if seconds < 1:
        return f"{round(seconds * 1000)} ms"
    return f"{seconds:.2f} s"


def _cell(value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    elif value is None:
        value = ""
    return html.escape(str(value))


def _database_table(calls: Sequence[DatabaseCall]) -> str:
    rows = "".join(
        "<tr>"
        f"<td>{index}</td>"
        f"<td>{_cell(call.query)}</td>"
        f"<td>{_cell(', '.join(map(str, call.params)))}</td>"
        f"<td>{_cell(call.affected_rows)}</td>"
        f"<td>{_cell(call.origin)}</td>"
        "</tr>"
        for index, call in enumerate(calls, start=1)
    )
    return (
        "<table><thead><tr><th>Order</th><th>Query</th><th>Params</th>"
        "<th>Affected Rows</th><th>File</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
    )


def _config_table(config: Mapping[str, Any]) -> str:
    rows = "".join(
        f"<tr><td>{_cell(name)}</td><td>{_cell(value)}</td></tr>"
        for name, value in config.items()
    )
    return (
        "<table><thead><tr><th>Name</th><th>Value</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
    )


_OVERLAY_STYLE = (
    "<style>#pcDiagnostics{position:fixed;bottom:0;left:0;width:100%;display:flex;"
    "gap:15px;background:#161616;color:#fff;border-top:2px solid #4caf50;"
    "font:13px sans-serif;z-index:9999}#pcDiagnostics>div{padding:7px 15px}"
    "#pcDiagnostics table{border-collapse:collapse}"
    "#pcDiagnostics td,#pcDiagnostics th{padding:4px 8px;border-bottom:1px solid #444}</style>"
)


def render_diagnostics(
    context: DiagnosticsContext, config: Mapping[str, Any] | None = None
) -> str:
    """Render the overlay summarising the request."""

    status = str(context.status_code)
    route_type = "" if "/" in context.route_name else "@"
    controllers = "<br>".join(
        f"{_cell(controller)}:{_cell(method)}" for controller, method in context.controllers
    )
    return (
        f"{_OVERLAY_STYLE}<div id=\"pcDiagnostics\">"
        f"<div class=\"method\">{_cell(context.method)}</div>"
        f"<div class=\"statusCode_{status[0]}00\">{_cell(status)}</div>"
        f"<div class=\"route\"><span>{route_type}</span>{_cell(context.route_name)}"
        f"<div class=\"controllers\">{controllers}</div></div>"
        f"<div class=\"elapsed\">{format_elapsed(context.elapsed())}</div>"
        f"<div class=\"database\"><span class=\"count\">{context.database_call_count}</span>"
        f"{_database_table(context.database_calls)}</div>"
        f"<div class=\"config\">{_config_table(config or {})}</div>"
        "</div>"
    )
