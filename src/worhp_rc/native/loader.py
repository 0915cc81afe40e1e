"""Loading of the solver library and binding of its entry points."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from functools import cache
from importlib.metadata import entry_points
from pathlib import Path
from typing import TYPE_CHECKING, Final

from worhp_rc.enums import LoadFailure
from worhp_rc.exceptions import ConfigError, LoadError

from .base import BinderPlugin

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .base import SolverLibrary

_ENTRY_POINT_GROUP: Final = "worhp_rc.plugins.binder"
_DEFAULT_BINDER: Final = "ctypes"

logger = logging.getLogger(__name__)


class LoadCoordinator:
    """Serializes the loading of solver libraries.

    The dynamic loader of the platform is not guaranteed to be safe when
    invoked concurrently. Every load-and-bind step runs inside the `lock`
    context of a coordinator, so that solves running in parallel threads
    never load at the same time. The lock covers loading only: the solves
    themselves run concurrently.

    A process-wide coordinator is returned by
    [`default_coordinator`][worhp_rc.native.default_coordinator]. Separate
    coordinators can be passed to the loader where isolation is needed.
    """

    def __init__(self) -> None:
        """Initialize the coordinator."""
        self._lock = threading.Lock()
        self._load_count = 0

    @property
    def load_count(self) -> int:
        """The number of load attempts made under this coordinator."""
        return self._load_count

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold the coordinator lock for the duration of the context.

        Yields:
            Nothing, the lock is held while the context is active.
        """
        with self._lock:
            self._load_count += 1
            yield


@cache
def default_coordinator() -> LoadCoordinator:
    """Return the process-wide load coordinator.

    Returns:
        The coordinator shared by all loads in the process.
    """
    return LoadCoordinator()


class BinderManager:
    """Manages the discovery and retrieval of binder plugins.

    Binder plugins are found through the `worhp_rc.plugins.binder` entry
    point group. For a given library path, the manager returns the first
    plugin that supports it, trying the built-in `ctypes` binder last. A
    binder may also be requested by name.

    To make a custom binder available, define an entry point in the
    `pyproject.toml` file of the package that provides it:

    ```toml
    [project.entry-points."worhp_rc.plugins.binder"]
    my_binder = "my_package.my_module:MyBinderPlugin"
    ```
    """

    def __init__(self) -> None:
        """Initialize the binder manager."""
        self._plugins: dict[str, type[BinderPlugin]] = {}
        for name, plugin in _from_entry_points().items():
            self._add_plugin(name, plugin)

    def _add_plugin(
        self, name: str, plugin: type[BinderPlugin], *, prioritize: bool = False
    ) -> None:
        name_lower = name.lower()
        if name_lower in self._plugins:
            msg = f"Duplicate plugin name: {name_lower}"
            raise ValueError(msg)
        if prioritize:
            plugins = self._plugins
            self._plugins = {name_lower: plugin}
            self._plugins.update(plugins)
        else:
            self._plugins[name_lower] = plugin

    def get_plugin(self, path: Path, name: str | None = None) -> type[BinderPlugin]:
        """Retrieve the binder plugin for a library.

        Args:
            path: The path of the library file.
            name: The name of the binder to use (optional).

        Returns:
            The plugin class that binds the library.

        Raises:
            ConfigError: If the named binder does not exist, or if no binder
                         supports the library.
        """
        if name is not None:
            plugin = self._plugins.get(name.lower())
            if plugin is None:
                msg = f"Binder not found: {name}"
                raise ConfigError(msg)
            return plugin
        candidates = sorted(
            self._plugins.items(), key=lambda item: item[0] == _DEFAULT_BINDER
        )
        for _, plugin in candidates:
            if plugin.is_supported(path):
                return plugin
        msg = f"No binder supports the library: {path}"
        raise ConfigError(msg)


@cache
def _from_entry_points() -> dict[str, type[BinderPlugin]]:
    plugins: dict[str, type[BinderPlugin]] = {}
    for entry_point in entry_points().select(group=_ENTRY_POINT_GROUP):
        plugin = entry_point.load()
        if not issubclass(plugin, BinderPlugin):
            msg = f"Incorrect type for binder plugin `{entry_point.name}`: {plugin}"
            raise TypeError(msg)
        plugins[entry_point.name] = plugin
    return plugins


def load_library(
    path: str | Path,
    *,
    binder: str | None = None,
    coordinator: LoadCoordinator | None = None,
    manager: BinderManager | None = None,
) -> SolverLibrary:
    """Load a solver library and bind its entry points.

    Loading is all-or-nothing: the path must be a regular file, the library
    must open, and all entry points must be found, otherwise a
    [`LoadError`][worhp_rc.exceptions.LoadError] is raised and nothing is
    returned. The whole step runs under the lock of the load coordinator.

    Args:
        path:        The path of the library file.
        binder:      The name of the binder plugin to use (optional).
        coordinator: The load coordinator, by default the process-wide one.
        manager:     The binder manager to find plugins with (optional).

    Returns:
        The bound library.

    Raises:
        LoadError: If the library cannot be loaded.
    """
    path = Path(path)
    if coordinator is None:
        coordinator = default_coordinator()
    with coordinator.lock():
        if not path.is_file():
            raise LoadError(
                path,
                LoadFailure.NOT_A_FILE,
                f"The WORHP library path was constructed to be: {path} "
                "and it does not appear to be a file",
            )
        if manager is None:
            manager = BinderManager()
        library = manager.get_plugin(path, binder).create(path)
    logger.debug("Loaded solver library %s", path)
    return library
