from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("pystitch")
except PackageNotFoundError:
    __version__ = "unknown"

from pystitch.compiler.markup import (
    HtmlMarkupParser,
    MarkupParser,
    XmlMarkupParser,
    serialize,
)
from pystitch.config import StitchConfig
from pystitch.core.exceptions import (
    CompositionError,
    ConfigError,
    FragmentParseError,
    ParseFailure,
    RegistryError,
    RenderFailure,
    StitchError,
)
from pystitch.core.nodes import Element, Node, Text
from pystitch.core.registry import RendererEntry, RendererRegistry
from pystitch.runtime.composer import TreeComposer, compose_markup, compose_markup_sync

__all__ = [
    "Element",
    "Node",
    "Text",
    "RendererEntry",
    "RendererRegistry",
    "TreeComposer",
    "compose_markup",
    "compose_markup_sync",
    "MarkupParser",
    "XmlMarkupParser",
    "HtmlMarkupParser",
    "serialize",
    "StitchConfig",
    "StitchError",
    "ParseFailure",
    "FragmentParseError",
    "RenderFailure",
    "RegistryError",
    "CompositionError",
    "ConfigError",
]
