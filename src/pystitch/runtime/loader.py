"""Registry loader - builds the renderer registry a composition run uses."""

import importlib
import logging
import os
import sys
from typing import Any, Iterable, Mapping

from pystitch.config import StitchConfig
from pystitch.core.exceptions import RegistryError
from pystitch.core.registry import RendererEntry, RendererRegistry
from pystitch.renderers.jinja import load_components

logger = logging.getLogger(__name__)


def import_object(target: str) -> Any:
    """Import an object from string (e.g. 'components:registry')."""
    if ":" not in target:
        raise RegistryError(f"Registry must be in format 'module:attr', got '{target}'")

    module_name, attr_name = target.split(":", 1)

    # Allow importing local modules from the working directory
    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise RegistryError(f"Could not import module '{module_name}': {e}") from e

    try:
        return getattr(module, attr_name)
    except AttributeError:
        raise RegistryError(
            f"Attribute '{attr_name}' not found in module '{module_name}'"
        )


def coerce_registry(value: Any) -> RendererRegistry:
    """Accept a registry, a mapping or iterable of entries, or a callable returning one."""
    if callable(value) and not isinstance(value, (RendererRegistry, Mapping)):
        value = value()

    if isinstance(value, RendererRegistry):
        return value
    if isinstance(value, Mapping):
        return RendererRegistry(value)
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        entries = list(value)
        if all(isinstance(e, RendererEntry) for e in entries):
            return RendererRegistry.from_entries(entries)

    raise RegistryError(f"Cannot build a renderer registry from {type(value).__name__}")


def load_registry(config: StitchConfig) -> RendererRegistry:
    """Combine the components directory and the imported registry from ``config``."""
    registry = RendererRegistry()

    if config.components_dir is not None:
        registry = registry.merged(load_components(config.components_dir))
        logger.debug(
            "Loaded %d component template(s) from %s", len(registry), config.components_dir
        )

    if config.registry:
        imported = coerce_registry(import_object(config.registry))
        registry = registry.merged(imported)
        logger.debug("Loaded %d renderer(s) from %s", len(imported), config.registry)

    return registry
