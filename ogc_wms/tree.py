"""Convert capabilities markup into a generic, immutable name/value tree."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Union
import xml.etree.ElementTree as ElementTree

from .errors import TransportFailureError

__all__ = [
    "TEXT_FIELD",
    "TreeScalar",
    "TreeSequence",
    "TreeMapping",
    "CapabilitiesTree",
    "capabilities_tree_from_xml",
    "element_to_tree",
    "text_of",
    "to_plain",
]

# Field holding the character data of an element that also has attributes or children.
TEXT_FIELD = "#text"


@dataclass(frozen=True)
class TreeScalar:
    value: str


@dataclass(frozen=True)
class TreeSequence:
    items: tuple["CapabilitiesTree", ...]

    def __iter__(self) -> Iterator["CapabilitiesTree"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class TreeMapping:
    """Named fields in document order.

    Field names are unique: repeated tags have already been collapsed into a
    single :class:`TreeSequence`.
    """

    fields: tuple[tuple[str, "CapabilitiesTree"], ...]
    _index: dict[str, "CapabilitiesTree"] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", dict(self.fields))

    def __iter__(self) -> Iterator[tuple[str, "CapabilitiesTree"]]:
        return iter(self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self.fields)

    def get(self, name: str) -> "CapabilitiesTree | None":
        return self._index.get(name)

    def text(self, name: str) -> str | None:
        """Return the character data of field ``name`` or ``None``."""

        return text_of(self._index.get(name))

    def all(self, name: str) -> tuple["CapabilitiesTree", ...]:
        """Return field ``name`` as a tuple, whether it occurred once or many times."""

        node = self._index.get(name)
        if node is None:
            return ()
        if isinstance(node, TreeSequence):
            return node.items
        return (node,)


CapabilitiesTree = Union[TreeScalar, TreeSequence, TreeMapping]


def text_of(node: CapabilitiesTree | None) -> str | None:
    if isinstance(node, TreeScalar):
        return node.value
    if isinstance(node, TreeMapping):
        return node.text(TEXT_FIELD)
    return None


def capabilities_tree_from_xml(raw: bytes | str) -> CapabilitiesTree:
    """Parse a capabilities document into a :data:`CapabilitiesTree`.

    The returned tree represents the content of the document element, so the
    ``Service`` and ``Capability`` blocks of a WMS response are top-level fields.

    Raises
    ------
    TransportFailureError
        If ``raw`` is not well-formed XML.
    """

    if isinstance(raw, str):
        raw = raw.encode("utf-8")

    try:
        root = ElementTree.fromstring(raw)
    except ElementTree.ParseError as exc:
        raise TransportFailureError(f"Capabilities document is not valid XML: {exc}.") from exc

    return element_to_tree(root)


def element_to_tree(element: ElementTree.Element) -> CapabilitiesTree:
    text = (element.text or "").strip()
    children = list(element)

    if not element.attrib and not children:
        return TreeScalar(text)

    grouped: dict[str, list[CapabilitiesTree]] = {}
    for name, value in element.attrib.items():
        grouped.setdefault(_local_name(name), []).append(TreeScalar(value))
    for child in children:
        if not isinstance(child.tag, str):
            # Comments and processing instructions.
            continue
        grouped.setdefault(_local_name(child.tag), []).append(element_to_tree(child))
    if text:
        grouped.setdefault(TEXT_FIELD, []).append(TreeScalar(text))

    fields: list[tuple[str, CapabilitiesTree]] = []
    for name, nodes in grouped.items():
        if len(nodes) == 1:
            fields.append((name, nodes[0]))
        else:
            fields.append((name, TreeSequence(tuple(nodes))))

    return TreeMapping(tuple(fields))


def to_plain(node: CapabilitiesTree | None) -> Any:
    """Convert a tree into plain ``str``/``list``/``dict`` values for JSON output."""

    if node is None:
        return None
    if isinstance(node, TreeScalar):
        return node.value
    if isinstance(node, TreeSequence):
        return [to_plain(item) for item in node.items]
    return {name: to_plain(value) for name, value in node.fields}


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    if ":" in tag:
        return tag.split(":", 1)[1]
    return tag
