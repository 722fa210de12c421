"""Reporter discovery and registration on top of pluggy.

Reporters come from two places: distributions advertising the
``netbundle.plugins`` entry-point group, and single ``*.py`` files in a
project's ``.netbundle/plugins/`` directory. A reporter that fails to import
or instantiate is logged and left out; it never stops a build.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType

import pluggy

from netbundle.plugins.hookspecs import NetbundleHookSpec

PROJECT_NAME = "netbundle"
ENTRY_POINT_GROUP = "netbundle.plugins"
LOCAL_MODULE_PREFIX = "netbundle_local_plugin_"

logger = logging.getLogger(__name__)


def is_reporter_class(candidate: object) -> bool:
    """Whether *candidate* is a class with at least one ``@hookimpl`` method."""
    if not inspect.isclass(candidate):
        return False
    marker = f"{PROJECT_NAME}_impl"
    return any(
        callable(member) and hasattr(member, marker)
        for attr, member in inspect.getmembers(candidate)
        if not attr.startswith("_")
    )


def _import_file(path: Path, module_name: str) -> ModuleType | None:
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        logger.warning("No import spec for reporter file %s", path)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.warning("Reporter file %s failed to import", path, exc_info=True)
        return None
    return module


def _reporter_classes(module: ModuleType) -> Iterator[type]:
    """Reporter classes defined in *module* itself (not imported into it)."""
    for _name, obj in inspect.getmembers(module, is_reporter_class):
        if obj.__module__ == module.__name__:
            yield obj


class PluginManager:
    """Owns the pluggy manager and exposes the event hook relay."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(NetbundleHookSpec)
        self._loaded = False

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry-point reporters, then files in *local_dir*.

        Returns the names of every registered plugin afterwards.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_class_plugins()
        if local_dir is not None and local_dir.is_dir():
            for path in sorted(local_dir.glob("*.py")):
                if not path.name.startswith("_"):
                    self._load_local_file(path)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        name = name or type(plugin).__name__
        self._pm.register(plugin, name=name)
        logger.debug("Registered reporter %s", name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    def _load_local_file(self, path: Path) -> None:
        module_name = f"{LOCAL_MODULE_PREFIX}{path.stem}"
        module = _import_file(path, module_name)
        if module is None:
            return
        for cls in _reporter_classes(module):
            self._register_instance_of(cls, f"{module_name}.{cls.__name__}")

    def _instantiate_class_plugins(self) -> None:
        """Entry points may name a class; hooks need an instance to bind ``self``."""
        for plugin in self.get_plugins():
            if is_reporter_class(plugin):
                name = self._pm.get_name(plugin) or plugin.__name__
                self._pm.unregister(plugin)
                self._register_instance_of(plugin, name)

    def _register_instance_of(self, cls: type, name: str) -> None:
        try:
            instance = cls()
        except Exception:
            logger.warning("Reporter %s could not be instantiated", name, exc_info=True)
            return
        self.register_plugin(instance, name=name)
