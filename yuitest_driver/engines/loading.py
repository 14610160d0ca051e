"""Engines are plugins registered under the ``yuitest_driver.engines`` group."""

import logging
from importlib.metadata import entry_points
from typing import Any

from yuitest_driver.engines.manifest import EngineManifest
from yuitest_driver.errors import DispatchError

log = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "yuitest_driver.engines"


class EngineNotFoundError(DispatchError):
    """The ``engine`` setting names no installed engine."""


def load_engine_manifest(key: str) -> EngineManifest[Any]:
    """Resolve the ``engine`` setting to an installed engine manifest.

    Raises:
        EngineNotFoundError: If no engine is registered under the key
        DispatchError: If the entry point does not provide a manifest

    """
    installed = entry_points(group=ENTRY_POINT_GROUP)
    matches = installed.select(name=key)
    if not matches:
        raise EngineNotFoundError(
            f"Unknown engine '{key}' in setting 'engine'. "
            f"Available engines: {sorted(installed.names)}"
        )

    entry = next(iter(matches))
    manifest = entry.load()
    if not isinstance(manifest, EngineManifest):
        raise DispatchError(
            f"Engine '{key}' ({entry.value}) does not provide an engine manifest"
        )

    log.info("Using %s engine from %s", key, entry.value)
    return manifest
