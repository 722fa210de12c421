"""Human-readable output for service results.

Every op gets a renderer registered with :func:`_renders`; ops without one
are printed as a flat list of ``key: value`` lines. Output is captured from
a recording Console, so it is plain text under CliRunner or a pipe.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from netbundle.output.console import create_console, get_output, style_for_namespace

if TYPE_CHECKING:
    from rich.console import Console

    from netbundle.services.result import ServiceResult

Renderer = Callable[["ServiceResult", "Console", bool], None]

_PATH_KEYS = frozenset({"path", "url", "final_url", "manifest"})
_SIZE_KEYS = frozenset({"size", "bytes_fetched"})
_BUILD_COUNTS = ("module_count", "remote_count", "local_count", "bytes_fetched")
_FETCH_STATS = ("network_fetches", "cache_hits", "retries")

_registry: dict[str, Renderer] = {}


def _renders(*ops: str) -> Callable[[Renderer], Renderer]:
    def register(fn: Renderer) -> Renderer:
        for op in ops:
            _registry[op] = fn
        return fn

    return register


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    console = create_console()
    if result.ok:
        _registry.get(result.op, _plain)(result, console, verbose)
    else:
        _failure(result, console, verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """One line: the useful path on success, the error message on failure."""
    if not result.ok:
        reason = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {reason}"
    if result.op == "resolve":
        return str(result.data.get("path", ""))
    manifest = result.data.get("manifest") if result.op == "build" else None
    return str(manifest) if manifest else f"OK: {result.op}"


def human_size(value: Any) -> str:
    if not isinstance(value, int):
        return str(value)
    for unit, scale in (("MiB", 1024 * 1024), ("KiB", 1024)):
        if value >= scale:
            return f"{value / scale:.1f} {unit}"
    return f"{value} B"


def _styled_value(key: str, value: Any) -> Text:
    if key in _PATH_KEYS:
        return Text(str(value), style="nb.path")
    if key in _SIZE_KEYS:
        return Text(human_size(value), style="nb.size")
    if key == "namespace":
        return Text(str(value), style=style_for_namespace(str(value)))
    return Text(str(value))


def _kv(console: Console, key: str, value: Any) -> None:
    console.print(Text.assemble(Text(f"  {key}: ", style="nb.key"), _styled_value(key, value)))


def _heading(console: Console, label: str, style: str, op: str, tail: str = "") -> None:
    line = Text.assemble(Text(label, style=style), Text(f"  {op}", style="nb.op"))
    if tail:
        line.append(f" — {tail}")
    console.print(line)


def _plain(result: ServiceResult, console: Console, verbose: bool) -> None:
    _heading(console, "OK", "nb.ok", result.op)
    for key, value in result.data.items():
        _kv(console, key, value)


_renders("resolve", "fetch")(_plain)


@_renders("build")
def _build(result: ServiceResult, console: Console, verbose: bool) -> None:
    data = result.data
    _heading(console, "OK", "nb.ok", result.op)

    modules = data.get("modules") or []
    if modules:
        table = Table(pad_edge=False)
        table.add_column("Namespace", no_wrap=True)
        table.add_column("Module", style="nb.path")
        table.add_column("Size", style="nb.size", justify="right")
        if verbose:
            table.add_column("Imports", justify="right")
        for module in modules:
            namespace = str(module.get("namespace", ""))
            cells: list[Text | str] = [
                Text(namespace, style=style_for_namespace(namespace)),
                str(module.get("path", "")),
                human_size(module.get("size", "")),
            ]
            if verbose:
                cells.append(str(len(module.get("imports", []))))
            table.add_row(*cells)
        console.print(table)

    shown = _BUILD_COUNTS + (_FETCH_STATS if verbose else ())
    for key in shown:
        if key in data:
            _kv(console, key, data[key])
    if data.get("externals"):
        _kv(console, "externals", ", ".join(data["externals"]))
    if data.get("manifest"):
        _kv(console, "manifest", data["manifest"])


def _failure(result: ServiceResult, console: Console, verbose: bool) -> None:
    error = result.error
    _heading(console, "ERROR", "nb.error", result.op, error.message if error else "Unknown error")
    if error is None:
        return
    for failure in error.detail.get("failures", []):
        console.print(Text.assemble(Text("  ✗ ", style="nb.error"), str(failure.get("message", ""))))
    if verbose:
        for key, value in error.detail.items():
            if key != "failures":
                _kv(console, key, value)
