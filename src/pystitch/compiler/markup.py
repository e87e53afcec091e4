"""Markup parsing and serialization.

Two parsers are available behind the ``MarkupParser`` protocol:

* ``XmlMarkupParser`` (``"xml"``) is strict. Anything that is not well-formed
  raises ``ParseFailure``. This is the default since a broken fragment would
  break hydration parity of the whole page.
* ``HtmlMarkupParser`` (``"html"``) goes through BeautifulSoup's
  ``html.parser`` backend and accepts tag soup the way a browser would.

Both produce ``pystitch.core.nodes`` trees. Comments, doctypes and processing
instructions are dropped.
"""

from typing import Dict, List, Optional, Protocol, Union, runtime_checkable

from bs4 import BeautifulSoup, NavigableString, ParserRejectedMarkup, Tag
from bs4.element import PreformattedString
from lxml import etree

from pystitch.core.exceptions import ConfigError, ParseFailure
from pystitch.core.nodes import GHOST_ROOT_TAG, Element, Node, Text
from pystitch.runtime.escape import escape_markup

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)

# Text inside these is emitted verbatim.
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


@runtime_checkable
class MarkupParser(Protocol):
    name: str

    def parse_document(self, markup: str) -> Element: ...

    def parse_fragment(self, markup: str) -> List[Node]: ...


def _single_root(nodes: List[Node], markup: str) -> Element:
    elements = [n for n in nodes if isinstance(n, Element)]
    stray_text = [n for n in nodes if isinstance(n, Text) and n.data.strip()]
    if len(elements) != 1 or stray_text:
        raise ParseFailure(
            f"Document must have exactly one root element, found {len(elements)}",
            markup=markup,
        )
    return elements[0]


class XmlMarkupParser:
    """Strict parser backed by lxml."""

    name = "xml"

    def __init__(self) -> None:
        options = dict(
            remove_comments=True,
            remove_pis=True,
            resolve_entities=False,
            no_network=True,
        )
        self._parser = etree.XMLParser(**options)
        # Documents are handed over as UTF-8 bytes whatever their declaration says.
        self._document_parser = etree.XMLParser(encoding="utf-8", **options)

    def parse_document(self, markup: str) -> Element:
        # Parsed unwrapped so an XML declaration or doctype may open the document.
        try:
            root = etree.fromstring(markup.encode("utf-8"), self._document_parser)
        except etree.XMLSyntaxError as e:
            raise ParseFailure(
                f"Malformed markup: {e.msg}", markup=markup, line=e.lineno
            ) from e
        return self._convert(root, {})

    def parse_fragment(self, markup: str) -> List[Node]:
        # Wrap so text-only and multi-root fragments parse. The wrapper sits on
        # the first line so reported line numbers stay correct.
        wrapped = f"<{GHOST_ROOT_TAG}>{markup}</{GHOST_ROOT_TAG}>"
        try:
            root = etree.fromstring(wrapped, self._parser)
        except etree.XMLSyntaxError as e:
            raise ParseFailure(
                f"Malformed markup: {e.msg}", markup=markup, line=e.lineno
            ) from e
        return self._convert(root, {}).children

    def _convert(self, el: "etree._Element", parent_nsmap: Dict) -> Element:
        node = Element(self._name(el.tag, el.prefix), self._attributes(el, parent_nsmap))
        if el.text:
            node.append(Text(el.text))
        for child in el:
            # Entities and other non-element children have non-string tags.
            if isinstance(child.tag, str):
                node.append(self._convert(child, el.nsmap))
            if child.tail:
                node.append(Text(child.tail))
        return node

    @staticmethod
    def _name(qualified: str, prefix: Optional[str]) -> str:
        local = etree.QName(qualified).localname
        return f"{prefix}:{local}" if prefix else local

    def _attributes(self, el: "etree._Element", parent_nsmap: Dict) -> Dict[str, str]:
        attrs: Dict[str, str] = {}
        # lxml keeps declarations apart from attributes, so they come out first.
        for prefix, uri in el.nsmap.items():
            if parent_nsmap.get(prefix) != uri:
                attrs["xmlns" if prefix is None else f"xmlns:{prefix}"] = uri

        prefixes = {uri: p for p, uri in el.nsmap.items() if p is not None}
        prefixes[XML_NAMESPACE] = "xml"
        for key, value in el.attrib.items():
            qname = etree.QName(key)
            if qname.namespace:
                prefix = prefixes.get(qname.namespace)
                key = f"{prefix}:{qname.localname}" if prefix else qname.localname
            attrs[key] = value
        return attrs


class HtmlMarkupParser:
    """Lenient parser backed by BeautifulSoup's html.parser builder."""

    name = "html"

    def parse_document(self, markup: str) -> Element:
        return _single_root(self.parse_fragment(markup), markup)

    def parse_fragment(self, markup: str) -> List[Node]:
        try:
            soup = BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)
        except ParserRejectedMarkup as e:
            raise ParseFailure(f"Malformed markup: {e}", markup=markup) from e
        return self._convert_children(soup)

    def _convert_children(self, tag: Tag) -> List[Node]:
        nodes: List[Node] = []
        for child in tag.children:
            if isinstance(child, Tag):
                element = Element(child.name, {k: v or "" for k, v in child.attrs.items()})
                for grandchild in self._convert_children(child):
                    element.append(grandchild)
                nodes.append(element)
            elif isinstance(child, NavigableString) and not isinstance(
                child, PreformattedString
            ):
                # PreformattedString covers comments, doctypes, CDATA and PIs.
                nodes.append(Text(str(child)))
        return nodes


_PARSERS = {
    "xml": XmlMarkupParser,
    "html": HtmlMarkupParser,
}


def get_parser(name: Union[str, MarkupParser, None] = None) -> MarkupParser:
    """Resolve a parser by name. Passing a parser instance returns it unchanged."""
    if name is None:
        return XmlMarkupParser()
    if isinstance(name, str):
        try:
            return _PARSERS[name]()
        except KeyError:
            raise ConfigError(
                f"Unknown parser '{name}', expected one of: {', '.join(sorted(_PARSERS))}"
            )
    return name


def serialize(node: Node) -> str:
    """Serialize a node tree to markup."""
    parts: List[str] = []
    _write(node, parts, raw=False)
    return "".join(parts)


def _write(node: Node, parts: List[str], raw: bool) -> None:
    if isinstance(node, Text):
        parts.append(node.data if raw else escape_markup(node.data))
        return

    parts.append(f"<{node.tag}")
    for key, value in node.attributes.items():
        parts.append(f' {key}="{escape_markup(value, quote=True)}"')
    parts.append(">")

    if node.tag in VOID_ELEMENTS and not node.children:
        return

    raw_children = node.tag in RAW_TEXT_ELEMENTS
    for child in node.children:
        _write(child, parts, raw_children)
    parts.append(f"</{node.tag}>")
