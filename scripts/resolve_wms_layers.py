"""Resolve WMS catalog items and write their derived values and metadata."""

from __future__ import annotations

import argparse
import asyncio
import json
import re
import sys
import unicodedata
from pathlib import Path
from typing import Any


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from md.metadata_tree import render_metadata_to_markdown  # noqa: E402
from ogc_wms.catalog_item import WebMapServiceCatalogItem  # noqa: E402
from ogc_wms.config import build_catalog_items, load_catalog_config  # noqa: E402
from ogc_wms.errors import ConfigurationError  # noqa: E402
from ogc_wms.serialization import serialize_to_json  # noqa: E402


def _normalize_slug(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
    return slug


def _derive_slug(item: WebMapServiceCatalogItem, index: int) -> str:
    for candidate in (item.name, item.layers):
        slug = _normalize_slug(candidate or "")
        if slug:
            return slug
    return f"layer-{index + 1}"


def _write_text_file(path: Path, content: str) -> None:
    if not content.endswith("\n"):
        content = f"{content}\n"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def describe_item(item: WebMapServiceCatalogItem) -> dict[str, Any]:
    """Return the saved form, derived values and metadata of a resolved item."""

    metadata = item.metadata
    intervals = item.intervals
    return {
        "item": serialize_to_json(item),
        "resolved": {
            "typeName": item.type_name,
            "metadataUrl": item.metadata_url,
            "dataUrl": item.data_url,
            "dataUrlType": item.data_url_type,
            "legendUrl": item.legend_url,
            "rectangle": item.rectangle.as_list(),
            "intervals": [
                {
                    "start": interval.start.isoformat(),
                    "stop": interval.stop.isoformat(),
                    "label": interval.label,
                }
                for interval in intervals
            ]
            if intervals is not None
            else None,
            "maximumLevel": item.maximum_level,
        },
        "metadata": metadata.to_dict(),
    }


async def resolve_items(items: list[WebMapServiceCatalogItem]) -> list[dict[str, Any]]:
    await asyncio.gather(*(item.load() for item in items))
    return [describe_item(item) for item in items]


def write_item_artefacts(
    descriptions: list[dict[str, Any]],
    items: list[WebMapServiceCatalogItem],
    *,
    output_dir: Path,
) -> list[dict[str, Path]]:
    written: list[dict[str, Path]] = []
    used: set[str] = set()
    for index, (description, item) in enumerate(zip(descriptions, items)):
        slug = _derive_slug(item, index)
        if slug in used:
            slug = f"{slug}-{index + 1}"
        used.add(slug)

        json_path = output_dir / f"{slug}.json"
        _write_text_file(json_path, json.dumps(description, indent=2, ensure_ascii=False))

        markdown_path = output_dir / f"{slug}_metadata.md"
        title = item.name or item.layers
        _write_text_file(
            markdown_path,
            render_metadata_to_markdown(description["metadata"], title=title),
        )

        written.append({"json": json_path, "markdown": markdown_path})
    return written


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve WMS layers from GetCapabilities and write JSON and Markdown artefacts.",
    )
    parser.add_argument("url", nargs="?", help="Base URL of the Web Map Service.")
    parser.add_argument(
        "layers",
        nargs="?",
        help="Comma-separated layer names or titles. Required together with url.",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        help="YAML catalog file with a list of items. Replaces the url/layers arguments.",
    )
    parser.add_argument(
        "--name",
        help="Optional display name of the item given by url/layers.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("resolved"),
        help="Directory where the artefacts should be written.",
    )
    return parser.parse_args(argv)


def _build_items(args: argparse.Namespace) -> list[WebMapServiceCatalogItem]:
    if args.catalog:
        return build_catalog_items(load_catalog_config(args.catalog))
    if not args.url or not args.layers:
        raise ConfigurationError("Either --catalog or both url and layers must be provided.")
    return [WebMapServiceCatalogItem(args.url, args.layers, name=args.name or "")]


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        items = _build_items(args)
    except ConfigurationError as error:
        print(f"Invalid catalog: {error}", file=sys.stderr)
        return 1

    output_dir = args.output_dir
    if not output_dir.is_absolute():
        output_dir = Path.cwd() / output_dir

    descriptions = asyncio.run(resolve_items(items))
    paths = write_item_artefacts(descriptions, items, output_dir=output_dir)

    exit_code = 0
    for item, description, item_paths in zip(items, descriptions, paths):
        metadata = description["metadata"]
        print(f"{item.name or item.layers}: {metadata['state']}")
        for key in ("serviceErrorMessage", "dataSourceErrorMessage"):
            if metadata.get(key):
                print(f"  {metadata[key]}", file=sys.stderr)
        print(f"  Wrote JSON: {item_paths['json']}")
        print(f"  Wrote metadata Markdown: {item_paths['markdown']}")
        if metadata["state"] == "failed":
            exit_code = 2

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
