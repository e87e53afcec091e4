"""Component renderers backed by Jinja2 templates.

A directory of ``<tag-name>.html`` templates becomes a registry, one renderer
per file::

    components/
        app-example.html    ->  <app-example>
        site-header.html    ->  <site-header>
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, Template, TemplateError, select_autoescape

from pystitch.core.exceptions import RegistryError
from pystitch.core.registry import RendererEntry, RendererRegistry

TEMPLATE_SUFFIX = ".html"


@dataclass(frozen=True)
class JinjaComponent:
    """Factory value handed to ``render_component``."""

    template: Template
    context: Dict[str, Any] = field(default_factory=dict)


async def render_component(component: JinjaComponent) -> str:
    return await component.template.render_async(**component.context)


def create_environment(directory: Optional[Path] = None) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(directory)) if directory else None,
        autoescape=select_autoescape(["html", "xml"], default_for_string=True),
        enable_async=True,
    )


def template_renderer(
    tag_name: str,
    source: Union[str, Template],
    environment: Optional[Environment] = None,
    context: Optional[Dict[str, Any]] = None,
) -> RendererEntry:
    """Build a renderer entry from template source (or an already compiled template)."""
    if isinstance(source, Template):
        template = source
    else:
        env = environment or create_environment()
        if not env.is_async:
            raise RegistryError("Jinja environment must be created with enable_async=True")
        try:
            template = env.from_string(source)
        except TemplateError as e:
            raise RegistryError(f"Invalid template for <{tag_name}>: {e}") from e

    render_context = {"tag_name": tag_name.lower(), **(context or {})}
    return RendererEntry(
        tag_name=tag_name,
        factory=JinjaComponent(template, render_context),
        render=render_component,
    )


def load_components(
    directory: Path, environment: Optional[Environment] = None
) -> RendererRegistry:
    """Build a registry from every ``*.html`` template in ``directory``."""
    directory = Path(directory)
    if not directory.is_dir():
        raise RegistryError(f"Components directory '{directory}' does not exist")

    env = environment or create_environment(directory)
    if not env.is_async:
        raise RegistryError("Jinja environment must be created with enable_async=True")

    entries = []
    for path in sorted(directory.glob(f"*{TEMPLATE_SUFFIX}")):
        tag_name = path.stem.lower()
        try:
            template = env.get_template(path.name)
        except TemplateError as e:
            raise RegistryError(f"Invalid template {path}: {e}") from e
        entries.append(template_renderer(tag_name, template))

    return RendererRegistry.from_entries(entries)
