"""Displayable metadata trees and the per-load metadata object of a catalog item."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

from .tree import CapabilitiesTree, TreeMapping, TreeScalar, TreeSequence, to_plain

__all__ = [
    "MetadataNode",
    "ResolutionState",
    "Metadata",
    "build_metadata_tree",
    "metadata_node_to_dict",
    "metadata_node_from_dict",
]


@dataclass
class MetadataNode:
    name: str = ""
    value: Any = None
    children: list["MetadataNode"] = field(default_factory=list)

    def find(self, name: str) -> "MetadataNode | None":
        for child in self.children:
            if child.name == name:
                return child
        return None


class ResolutionState(Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


def build_metadata_tree(target: MetadataNode, source: CapabilitiesTree | None) -> None:
    """Append one child to ``target`` per field of ``source``, recursively.

    Scalars and sequences are leaves. A ``BoundingBox`` sequence becomes one
    child per element named after the element's reference system, since a
    service may publish the same extent in several of them.
    """

    if not isinstance(source, TreeMapping):
        return

    for name, value in source:
        if name == "BoundingBox" and isinstance(value, TreeSequence):
            for box in value.items:
                crs = None
                if isinstance(box, TreeMapping):
                    crs = box.text("CRS") or box.text("SRS")
                child = MetadataNode(name=f"{name} ({crs})", value=_display_value(box))
                build_metadata_tree(child, box)
                target.children.append(child)
        else:
            child = MetadataNode(name=name, value=_display_value(value))
            build_metadata_tree(child, value)
            target.children.append(child)


def _display_value(node: CapabilitiesTree) -> Any:
    if isinstance(node, TreeScalar):
        return node.value
    return node


def metadata_node_to_dict(node: MetadataNode) -> dict[str, Any]:
    value = node.value
    if isinstance(value, (TreeScalar, TreeSequence, TreeMapping)):
        value = to_plain(value)
    return {
        "name": node.name,
        "value": value,
        "children": [metadata_node_to_dict(child) for child in node.children],
    }


def metadata_node_from_dict(data: Mapping[str, Any]) -> MetadataNode:
    if not isinstance(data, Mapping):
        raise TypeError("A metadata node must be a mapping")

    children = data.get("children") or []
    return MetadataNode(
        name=str(data.get("name", "")),
        value=data.get("value"),
        children=[metadata_node_from_dict(child) for child in children],
    )


class Metadata:
    """Metadata resolved by one load of a catalog item.

    A new object is created for every load; the task that fills it in writes
    only into its own object. Readers wait for the shared task with
    :meth:`wait`.
    """

    def __init__(self) -> None:
        self.state = ResolutionState.LOADING
        self.service_metadata = MetadataNode(name="Service")
        self.data_source_metadata = MetadataNode(name="Layer")
        self.service_error_message: str | None = None
        self.data_source_error_message: str | None = None
        self._task: asyncio.Future[None] | None = None

    @property
    def is_loading(self) -> bool:
        return self.state is ResolutionState.LOADING

    def attach(self, task: asyncio.Future[None]) -> None:
        if self._task is not None:
            raise RuntimeError("Metadata is already being resolved.")
        self._task = task

    async def wait(self) -> "Metadata":
        """Wait until resolution finished and return ``self``."""

        if self._task is not None:
            await asyncio.shield(self._task)
        return self

    def add_done_callback(self, callback: Callable[["Metadata"], Any]) -> None:
        if self._task is None or self._task.done():
            callback(self)
            return
        self._task.add_done_callback(lambda _task: callback(self))

    def mark_ready(self) -> None:
        self.state = ResolutionState.READY

    def mark_failed(self, message: str) -> None:
        self.service_error_message = message
        self.data_source_error_message = message
        self.state = ResolutionState.FAILED

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "serviceErrorMessage": self.service_error_message,
            "dataSourceErrorMessage": self.data_source_error_message,
            "serviceMetadata": metadata_node_to_dict(self.service_metadata),
            "dataSourceMetadata": metadata_node_to_dict(self.data_source_metadata),
        }
