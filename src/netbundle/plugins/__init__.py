"""Extension layer: build event reporting via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Reporter failures are logged, never raised into the build.
"""

from netbundle.plugins.events import EventSink
from netbundle.plugins.manager import PluginManager

__all__ = ["EventSink", "PluginManager"]
