"""Renderer registry: tag name -> renderer entry."""

import inspect
from dataclasses import dataclass
from types import MappingProxyType
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    Iterator,
    Mapping,
    Optional,
    Union,
)

from pystitch.core.exceptions import RegistryError

RenderFn = Callable[[Any], Union[Awaitable[str], str]]


@dataclass(frozen=True)
class RendererEntry:
    """A component renderer.

    ``factory`` is opaque to pystitch; it is handed back to ``render`` which
    must produce the component's markup fragment.
    """

    tag_name: str
    factory: Any
    render: RenderFn

    def __post_init__(self) -> None:
        if not self.tag_name:
            raise RegistryError("Renderer entries need a tag name")
        if not callable(self.render):
            raise RegistryError(f"Renderer for <{self.tag_name}> is not callable")
        object.__setattr__(self, "tag_name", self.tag_name.lower())

    async def invoke(self) -> str:
        """Run the renderer and return its fragment."""
        result = self.render(self.factory)
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, str):
            raise TypeError(
                f"Renderer for <{self.tag_name}> returned {type(result).__name__}, expected str"
            )
        return result


class RendererRegistry(Mapping[str, RendererEntry]):
    """Immutable mapping of lowercase tag names to renderer entries."""

    def __init__(self, entries: Optional[Mapping[str, RendererEntry]] = None) -> None:
        normalized: Dict[str, RendererEntry] = {}
        for tag_name, entry in (entries or {}).items():
            key = tag_name.lower()
            if key in normalized:
                raise RegistryError(f"Duplicate renderer for <{key}>")
            if not isinstance(entry, RendererEntry):
                raise RegistryError(
                    f"Registry value for <{key}> must be a RendererEntry, got {type(entry).__name__}"
                )
            if entry.tag_name != key:
                raise RegistryError(
                    f"Registry key <{key}> does not match entry tag <{entry.tag_name}>"
                )
            normalized[key] = entry
        self._entries: Mapping[str, RendererEntry] = MappingProxyType(normalized)

    @classmethod
    def from_entries(cls, entries: Iterable[RendererEntry]) -> "RendererRegistry":
        mapping: Dict[str, RendererEntry] = {}
        for entry in entries:
            if entry.tag_name in mapping:
                raise RegistryError(f"Duplicate renderer for <{entry.tag_name}>")
            mapping[entry.tag_name] = entry
        return cls(mapping)

    def merged(self, other: "RendererRegistry") -> "RendererRegistry":
        """Return a new registry holding both sets of entries."""
        return RendererRegistry.from_entries([*self.values(), *other.values()])

    def get(self, tag_name: str, default: Any = None) -> Any:  # type: ignore[override]
        return self._entries.get(tag_name.lower(), default)

    def __getitem__(self, tag_name: str) -> RendererEntry:
        return self._entries[tag_name.lower()]

    def __contains__(self, tag_name: object) -> bool:
        return isinstance(tag_name, str) and tag_name.lower() in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"RendererRegistry({list(self._entries)!r})"
