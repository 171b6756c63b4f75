"""Tests for building time intervals from WMS time dimensions."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
import unittest

from ogc_wms.errors import MalformedDimensionReferenceError, MalformedTimestampError
from ogc_wms.layers import find_layer, root_layer_of
from ogc_wms.time_dimension import intervals_of, parse_timestamp, time_extent_of
from ogc_wms.tree import capabilities_tree_from_xml

FIXTURES = Path(__file__).parent / "fixtures"


def _layer(fixture: str, name: str):
    tree = capabilities_tree_from_xml((FIXTURES / fixture).read_bytes())
    return find_layer(root_layer_of(tree), name)


def _inline_layer(values: str):
    return capabilities_tree_from_xml(
        f'<Layer><Name>Inline</Name><Dimension name="time" units="ISO8601">{values}</Dimension></Layer>'
    )


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TimeDimensionTests(unittest.TestCase):
    def test_consecutive_times_become_intervals(self) -> None:
        intervals = intervals_of(_layer("wms_130_capabilities.xml", "Rain"))

        self.assertEqual(len(intervals), 2)
        self.assertEqual(intervals[0].start, _utc(2020, 1, 1))
        self.assertEqual(intervals[0].stop, _utc(2020, 1, 2))
        self.assertEqual(intervals[1].start, _utc(2020, 1, 2))
        self.assertEqual(intervals[1].stop, _utc(2020, 1, 3))
        self.assertEqual([interval.label for interval in intervals], ["2020-01-01", "2020-01-02"])

    def test_last_interval_repeats_previous_duration(self) -> None:
        intervals = intervals_of(_layer("wms_130_capabilities.xml", "WindSpeed"))

        self.assertEqual(len(intervals), 2)
        self.assertEqual(intervals[0].duration, timedelta(hours=6))
        self.assertEqual(intervals[1].start, _utc(2021, 6, 1, 6))
        self.assertEqual(intervals[1].duration, intervals[0].duration)

    def test_intervals_are_ascending_and_contiguous(self) -> None:
        values = ",".join(f"2022-03-{day:02d}" for day in range(1, 8))
        intervals = intervals_of(_inline_layer(values))

        self.assertEqual(len(intervals), 6)
        for previous, current in zip(intervals, intervals[1:]):
            self.assertLess(previous.start, current.start)
            self.assertEqual(previous.stop, current.start)
        self.assertEqual(intervals[-1].duration, intervals[-2].duration)

    def test_two_times_give_one_interval(self) -> None:
        intervals = intervals_of(_inline_layer("2020-01-01T00:00:00Z,2020-01-01T12:00:00Z"))
        self.assertEqual(len(intervals), 1)
        self.assertEqual(intervals[0].duration, timedelta(hours=12))

    def test_single_time_is_not_time_varying(self) -> None:
        self.assertIsNone(intervals_of(_layer("wms_130_capabilities.xml", "Snapshot")))
        self.assertIsNone(intervals_of(_inline_layer("2020-01-01")))

    def test_layer_without_time_dimension(self) -> None:
        layer = capabilities_tree_from_xml(
            '<Layer><Name>Depth</Name><Dimension name="elevation" units="m">0,10,20</Dimension></Layer>'
        )
        self.assertIsNone(intervals_of(layer))
        self.assertIsNone(intervals_of(_layer("wms_130_capabilities.xml", "Weather")))

    def test_time_dimension_is_picked_among_several(self) -> None:
        extent = time_extent_of(_layer("wms_130_capabilities.xml", "WindSpeed"))
        self.assertTrue(extent.startswith("2021-06-01T00:00:00Z"))

    def test_values_may_live_in_extent_element(self) -> None:
        intervals = intervals_of(_layer("wms_111_capabilities.xml", "Temperature"))

        self.assertEqual(len(intervals), 2)
        self.assertEqual(intervals[0].start, _utc(2019, 1, 1))
        self.assertEqual(intervals[1].stop, _utc(2019, 1, 3))

    def test_missing_extent_reference(self) -> None:
        layer = _layer("wms_111_capabilities.xml", "Orphan")
        with self.assertRaises(MalformedDimensionReferenceError):
            time_extent_of(layer)
        self.assertIsNone(intervals_of(layer))

    def test_malformed_timestamp_propagates(self) -> None:
        with self.assertRaises(MalformedTimestampError) as context:
            intervals_of(_layer("wms_130_capabilities.xml", "Broken"))
        self.assertEqual(context.exception.token, "not-a-date")

    def test_last_interval_past_maximum_date(self) -> None:
        layer = _inline_layer("9999-12-30T00:00:00Z,9999-12-31T00:00:00Z,9999-12-31T12:00:00Z")
        with self.assertRaises(MalformedTimestampError) as context:
            intervals_of(layer)
        self.assertEqual(context.exception.token, "9999-12-31T12:00:00Z")

    def test_parse_timestamp_keeps_offsets_and_defaults_to_utc(self) -> None:
        self.assertEqual(parse_timestamp(" 2020-01-01 "), _utc(2020, 1, 1))
        self.assertEqual(
            parse_timestamp("2020-01-01T02:00:00+02:00"),
            _utc(2020, 1, 1),
        )
        with self.assertRaises(MalformedTimestampError):
            parse_timestamp("yesterday")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
