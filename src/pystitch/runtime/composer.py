"""Tree composer - replaces marker elements with their rendered fragments."""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional, Sequence, Union

from pystitch.compiler.markup import MarkupParser, get_parser, serialize
from pystitch.core.exceptions import (
    CompositionError,
    ConfigError,
    FragmentParseError,
    ParseFailure,
    RenderFailure,
)
from pystitch.core.nodes import Element, Node, Text, ghost_root
from pystitch.core.registry import RendererEntry, RendererRegistry

if TYPE_CHECKING:
    from pystitch.config import StitchConfig

logger = logging.getLogger(__name__)

DEFAULT_SLOT_TAG = "slot"

# "drop" skips discarded children entirely, "compose" still renders them
# (renderer side effects happen) and throws the result away.
DISCARD_POLICIES = ("drop", "compose")


def find_insertion_point(nodes: Sequence[Node], slot_tag: str) -> Optional[Element]:
    """Return the first element named ``slot_tag`` in document order."""
    for node in nodes:
        if not isinstance(node, Element):
            continue
        if node.tag == slot_tag:
            return node
        for descendant in node.iter_elements():
            if descendant.tag == slot_tag:
                return descendant
    return None


def unwrap_ghost_root(ghost: Element) -> Node:
    """Return the single node accumulated by a ghost root."""
    if not ghost.is_ghost:
        raise CompositionError(f"<{ghost.tag}> is not a ghost root")
    if len(ghost.children) != 1:
        raise CompositionError(
            f"Ghost root must hold exactly one node, got {len(ghost.children)}"
        )
    return ghost.children[0]


class TreeComposer:
    """Walks a markup tree depth-first and composes rendered components into it.

    Siblings are composed one after the other in document order, so renderers
    are always invoked in the order their markers appear in the input.
    """

    def __init__(
        self,
        registry: RendererRegistry,
        parser: Union[str, MarkupParser, None] = None,
        slot_tag: str = DEFAULT_SLOT_TAG,
        render_timeout: Optional[float] = None,
        discard_policy: str = "drop",
    ) -> None:
        if discard_policy not in DISCARD_POLICIES:
            raise ConfigError(
                f"Unknown discard policy '{discard_policy}', expected one of: {', '.join(DISCARD_POLICIES)}"
            )
        if render_timeout is not None and render_timeout <= 0:
            raise ConfigError("render_timeout must be a positive number of seconds")
        if not slot_tag:
            raise ConfigError("slot_tag must not be empty")

        self.registry = registry
        self.parser = get_parser(parser)
        self.slot_tag = slot_tag.lower()
        self.render_timeout = render_timeout
        self.discard_policy = discard_policy

    @classmethod
    def from_config(
        cls, config: "StitchConfig", registry: RendererRegistry
    ) -> "TreeComposer":
        return cls(
            registry,
            parser=config.parser,
            slot_tag=config.slot_tag,
            render_timeout=config.render_timeout,
            discard_policy=config.discard_policy,
        )

    async def compose(self, node: Node) -> Node:
        """Compose ``node`` and return the new tree. The input is left untouched."""
        ghost = ghost_root()
        await self.compose_into(node, ghost)
        return unwrap_ghost_root(ghost)

    async def compose_into(self, node: Node, parent: Element) -> None:
        """Compose ``node`` and attach the finished result to ``parent``."""
        if isinstance(node, Text):
            parent.append(Text(node.data))
            return

        entry = self.registry.get(node.tag)
        if entry is None:
            result = Element(node.tag)
            for child in node.children:
                await self.compose_into(child, result)
        else:
            result = await self._compose_marker(node, entry)

        result.attributes.update(node.attributes)
        parent.append(result)

    async def redistribute(
        self, children: Sequence[Node], insertion_point: Optional[Element]
    ) -> None:
        """Move a marker's original children into its fragment's insertion point."""
        if insertion_point is None:
            if not children:
                return
            if self.discard_policy == "compose":
                sink = ghost_root()
                for child in children:
                    await self.compose_into(child, sink)
            logger.debug(
                "No <%s> in fragment, discarding %d child node(s)",
                self.slot_tag,
                len(children),
            )
            return

        for child in children:
            await self.compose_into(child, insertion_point)

    async def _compose_marker(self, node: Element, entry: RendererEntry) -> Element:
        fragment = await self._render(entry)

        try:
            fragment_nodes = self.parser.parse_fragment(fragment)
        except ParseFailure as e:
            raise FragmentParseError(entry.tag_name, fragment, line=e.line) from e

        insertion_point = find_insertion_point(fragment_nodes, self.slot_tag)
        await self.redistribute(node.children, insertion_point)

        result = Element(node.tag)
        for fragment_node in fragment_nodes:
            result.append(fragment_node)
        return result

    async def _render(self, entry: RendererEntry) -> str:
        logger.debug("Rendering <%s>", entry.tag_name)
        try:
            if self.render_timeout is None:
                return await entry.invoke()
            return await asyncio.wait_for(entry.invoke(), self.render_timeout)
        except Exception as e:
            raise RenderFailure(entry.tag_name, e) from e


async def compose_markup(
    markup: str,
    registry: RendererRegistry,
    parser: Union[str, MarkupParser, None] = None,
    **options,
) -> str:
    """Parse ``markup``, compose it against ``registry`` and serialize the result.

    Raises:
        ParseFailure: the input or a rendered fragment is not well-formed.
        RenderFailure: a renderer failed.
    """
    markup_parser = get_parser(parser)
    root = markup_parser.parse_document(markup)
    composer = TreeComposer(registry, parser=markup_parser, **options)
    return serialize(await composer.compose(root))


def compose_markup_sync(
    markup: str,
    registry: RendererRegistry,
    parser: Union[str, MarkupParser, None] = None,
    **options,
) -> str:
    """Blocking wrapper around ``compose_markup`` for callers without a loop."""
    return asyncio.run(compose_markup(markup, registry, parser=parser, **options))
