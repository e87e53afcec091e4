"""Markup tree nodes."""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Union

# Reserved tag of the synthetic container that anchors a composition run.
GHOST_ROOT_TAG = "pystitch-ghost-root"


@dataclass(frozen=True)
class Text:
    """A text node. Immutable."""

    data: str


@dataclass
class Element:
    """An element with a lowercase tag, ordered attributes and owned children."""

    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["Node"] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.tag = self.tag.lower()

    def append(self, child: "Node") -> None:
        """Attach a fully built child as the last child of this element."""
        self.children.append(child)

    def iter_elements(self) -> Iterator["Element"]:
        """Yield descendant elements in document order (self excluded)."""
        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.iter_elements()

    @property
    def is_ghost(self) -> bool:
        return self.tag == GHOST_ROOT_TAG


Node = Union[Text, Element]


def ghost_root() -> Element:
    """Create a fresh ghost root."""
    return Element(GHOST_ROOT_TAG)
