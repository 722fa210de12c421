"""Platform built-in modules that are never fetched or read.

Targets the node platform: a specifier naming one of these modules (with
or without the ``node:`` scheme, and including subpaths such as
``fs/promises``) resolves into the external namespace.
"""

from __future__ import annotations

from collections.abc import Iterable

NODE_SCHEME = "node:"

NODE_BUILTINS: frozenset[str] = frozenset(
    {
        "assert",
        "async_hooks",
        "buffer",
        "child_process",
        "cluster",
        "console",
        "constants",
        "crypto",
        "dgram",
        "diagnostics_channel",
        "dns",
        "domain",
        "events",
        "fs",
        "http",
        "http2",
        "https",
        "inspector",
        "module",
        "net",
        "os",
        "path",
        "perf_hooks",
        "process",
        "punycode",
        "querystring",
        "readline",
        "repl",
        "stream",
        "string_decoder",
        "sys",
        "timers",
        "tls",
        "trace_events",
        "tty",
        "url",
        "util",
        "v8",
        "vm",
        "wasi",
        "worker_threads",
        "zlib",
    }
)


def is_builtin(specifier: str, extra: Iterable[str] = ()) -> bool:
    """Whether *specifier* names a platform built-in (or a configured external).

    Examples:
        >>> is_builtin("fs")
        True
        >>> is_builtin("node:fs/promises")
        True
        >>> is_builtin("lodash")
        False
    """
    if specifier.startswith(NODE_SCHEME):
        return True
    extras = frozenset(extra)
    if specifier in extras:
        return True
    root = specifier.split("/", 1)[0]
    return root in NODE_BUILTINS or root in extras
