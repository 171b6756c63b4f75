"""Render resolved WMS metadata trees to Markdown."""
from __future__ import annotations

import argparse
import json
import re
from collections.abc import Mapping, Sequence
from html import unescape
from pathlib import Path
from typing import Any

from ogc_wms.metadata import MetadataNode, metadata_node_from_dict
from ogc_wms.tree import TreeMapping, TreeScalar, TreeSequence, to_plain

__all__ = [
    "render_metadata_tree_to_markdown",
    "render_metadata_to_markdown",
    "main",
]

_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_URL_RE = re.compile(r"(https?://[^\s<>()]+)", re.IGNORECASE)
_TRAILING_PUNCTUATION = ".,:;!?)]"
_INDENT = "  "


def render_metadata_tree_to_markdown(node: MetadataNode) -> str:
    """Render the children of ``node`` as a nested Markdown list."""

    if not isinstance(node, MetadataNode):
        raise TypeError("node must be a MetadataNode")

    lines: list[str] = []
    for child in node.children:
        _render_node(child, depth=0, lines=lines)
    return "\n".join(lines)


def render_metadata_to_markdown(
    metadata: Mapping[str, Any],
    *,
    title: str | None = None,
    heading_level: int = 3,
) -> str:
    """Render a serialized metadata object (see ``Metadata.to_dict``)."""

    if not isinstance(metadata, Mapping):
        raise TypeError("metadata must be a mapping")

    heading_level = max(1, int(heading_level))
    section_prefix = "#" * heading_level

    sections: list[str] = []
    if title:
        sections.append(f"{'#' * max(1, heading_level - 1)} {title}")

    state = metadata.get("state")
    if isinstance(state, str) and state:
        sections.append(f"Status: {state}")

    for heading, tree_key, error_key in (
        ("Service", "serviceMetadata", "serviceErrorMessage"),
        ("Layer", "dataSourceMetadata", "dataSourceErrorMessage"),
    ):
        section_lines = [f"{section_prefix} {heading}"]
        error = metadata.get(error_key)
        if isinstance(error, str) and error:
            section_lines.append("")
            section_lines.append(f"> {error}")

        tree = metadata.get(tree_key)
        if isinstance(tree, Mapping):
            body = render_metadata_tree_to_markdown(metadata_node_from_dict(tree))
            if body:
                section_lines.append("")
                section_lines.append(body)

        sections.append("\n".join(section_lines))

    return "\n\n".join(sections)


def _render_node(node: MetadataNode, *, depth: int, lines: list[str]) -> None:
    prefix = f"{_INDENT * depth}- **{node.name}**"
    if node.children:
        lines.append(prefix)
        for child in node.children:
            _render_node(child, depth=depth + 1, lines=lines)
        return

    value = _format_value(node.value)
    lines.append(f"{prefix}: {value}" if value else prefix)


def _format_value(value: Any) -> str:
    if isinstance(value, (TreeScalar, TreeSequence, TreeMapping)):
        value = to_plain(value)
    if value is None:
        return ""
    if isinstance(value, str):
        return _linkify(_normalize_text(value))
    if isinstance(value, Sequence):
        return ", ".join(_format_value(entry) for entry in value)
    if isinstance(value, Mapping):
        return f"`{json.dumps(value, ensure_ascii=False)}`"
    return str(value)


def _normalize_text(value: str) -> str:
    text = unescape(value)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _BR_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    text = text.strip()
    text = re.sub(r"[ \t]*\n[ \t]*", "\n", text)
    return text.replace("\n", "<br />")


def _linkify(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        url = match.group(0)
        suffix = ""
        while url and url[-1] in _TRAILING_PUNCTUATION:
            suffix = url[-1] + suffix
            url = url[:-1]
        if not url:
            return match.group(0)
        return f"<{url}>{suffix}"

    return _URL_RE.sub(replace, text)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Render resolved WMS metadata to Markdown")
    parser.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help="JSON files written by scripts/resolve_wms_layers.py",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output Markdown file. Defaults to stdout",
    )
    args = parser.parse_args(argv)

    missing = [str(path) for path in args.inputs if not path.exists()]
    if missing:
        raise FileNotFoundError(f"Input file(s) not found: {', '.join(missing)}")

    sections: list[str] = []
    for path in args.inputs:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, Mapping) or not isinstance(data.get("metadata"), Mapping):
            raise TypeError(f"Expected a resolved catalog item with 'metadata' in {path}")
        item = data.get("item") if isinstance(data.get("item"), Mapping) else {}
        title = item.get("name") or item.get("layers") or path.stem
        sections.append(render_metadata_to_markdown(data["metadata"], title=str(title)))

    output = "\n\n".join(sections)

    if args.output:
        args.output.write_text(output + "\n", encoding="utf-8")
    else:
        print(output)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
