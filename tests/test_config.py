"""Tests for loading catalog definitions from YAML."""
from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from ogc_wms.config import build_catalog_items, load_catalog_config, parse_catalog_config
from ogc_wms.errors import ConfigurationError
from ogc_wms.settings import DEFAULT_WMS_SETTINGS

CATALOG_YAML = """\
corsProxy:
  url: https://catalog.example/proxy/
  domains:
    - example.org
wms:
  version: 1.1.1
  defaultParameters:
    format: image/jpeg
items:
  - name: Rainfall
    type: wms
    url: http://example.org/wms
    layers: Rain
  - url: http://maps.example.com/ows
    layers: Temperature
    legendUrl: http://maps.example.com/legend.png
"""


class LoadCatalogConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, content: str) -> Path:
        path = self.tmp_dir / "catalog.yaml"
        path.write_text(content, encoding="utf-8")
        return path

    def test_loads_items_proxy_and_settings(self) -> None:
        config = load_catalog_config(self._write(CATALOG_YAML))

        self.assertEqual(len(config.items), 2)
        self.assertEqual(config.cors_proxy.base_url, "https://catalog.example/proxy/")
        self.assertEqual(config.cors_proxy.proxy_domains, ("example.org",))
        self.assertFalse(config.cors_proxy.always_use_proxy)
        self.assertEqual(config.settings.version, "1.1.1")
        self.assertEqual(config.settings.default_parameters["format"], "image/jpeg")
        self.assertIs(config.settings.default_parameters["transparent"], True)

    def test_builds_items_with_shared_settings(self) -> None:
        items = build_catalog_items(load_catalog_config(self._write(CATALOG_YAML)))

        rain, temperature = items
        self.assertEqual(rain.name, "Rainfall")
        self.assertEqual(
            rain.metadata_url,
            "http://example.org/wms?service=WMS&version=1.1.1&request=GetCapabilities",
        )
        self.assertIs(rain.proxy, temperature.proxy)
        self.assertEqual(temperature.legend_url, "http://maps.example.com/legend.png")
        self.assertEqual(
            temperature.create_imagery_request().parameters["format"],
            "image/jpeg",
        )

    def test_defaults_without_optional_blocks(self) -> None:
        config = parse_catalog_config({"items": []})
        self.assertIsNone(config.cors_proxy)
        self.assertIs(config.settings, DEFAULT_WMS_SETTINGS)
        self.assertEqual(build_catalog_items(config), [])

    def test_missing_file(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_catalog_config(self.tmp_dir / "missing.yaml")

    def test_invalid_yaml(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_catalog_config(self._write("items: [unclosed"))

    def test_wrong_shapes(self) -> None:
        for data in (
            ["not", "a", "mapping"],
            {"items": "Rain"},
            {"items": [], "corsProxy": {"domains": ["example.org"]}},
            {"items": [], "corsProxy": {"url": "/proxy/", "domains": "example.org"}},
            {"items": [], "wms": {"defaultParameters": ["format"]}},
        ):
            with self.subTest(data=data):
                with self.assertRaises(ConfigurationError):
                    parse_catalog_config(data)

    def test_invalid_item(self) -> None:
        config = parse_catalog_config({"items": [{"type": "wfs"}]})
        with self.assertRaises(ConfigurationError) as context:
            build_catalog_items(config)
        self.assertIn("Catalog item 0", str(context.exception))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
