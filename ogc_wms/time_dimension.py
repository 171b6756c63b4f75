"""Turn the time dimension of a WMS layer into a sequence of time intervals."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from dateutil.parser import isoparse
from loguru import logger

from .errors import MalformedDimensionReferenceError, MalformedTimestampError
from .tree import TreeMapping, text_of

__all__ = [
    "TimeInterval",
    "parse_timestamp",
    "time_extent_of",
    "intervals_of",
]

TIME_DIMENSION = "time"


@dataclass(frozen=True)
class TimeInterval:
    start: datetime
    stop: datetime
    label: str

    @property
    def duration(self) -> timedelta:
        return self.stop - self.start


def parse_timestamp(token: str) -> datetime:
    """Parse an ISO 8601 token; values without an offset are taken as UTC."""

    text = token.strip()
    try:
        parsed = isoparse(text)
    except (ValueError, OverflowError) as exc:
        raise MalformedTimestampError(token) from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def time_extent_of(layer: TreeMapping) -> str | None:
    """Return the raw comma-separated value list of the layer's time dimension.

    WMS 1.3.0 puts the values inside the ``Dimension`` element; WMS 1.1.x
    declares an empty ``Dimension`` and lists the values in a sibling
    ``Extent`` element of the same name.

    Raises
    ------
    MalformedDimensionReferenceError
        If the values live in an ``Extent`` that the layer does not declare.
    """

    dimension = None
    for candidate in layer.all("Dimension"):
        if isinstance(candidate, TreeMapping) and candidate.text("name") == TIME_DIMENSION:
            dimension = candidate
            break

    if dimension is None:
        return None

    inline = text_of(dimension)
    if inline:
        return inline

    for extent in layer.all("Extent"):
        if isinstance(extent, TreeMapping) and extent.text("name") == TIME_DIMENSION:
            value = text_of(extent)
            if value:
                return value
            break

    raise MalformedDimensionReferenceError(
        f"Layer '{layer.text('Name')}' declares a time dimension without a matching Extent."
    )


def intervals_of(layer: TreeMapping) -> tuple[TimeInterval, ...] | None:
    """Build ordered, non-overlapping intervals from the layer's time dimension.

    ``N`` listed times describe ``N - 1`` steps. Each step starts at a listed
    time and, except for the last one, ends at the next listed time. The last
    step repeats the duration of the step before it, so for the evenly spaced
    lists services publish it ends exactly at the final listed time. A
    dimension that lists a single time is treated as not time-varying and
    yields ``None``.

    Raises
    ------
    MalformedTimestampError
        If any listed time cannot be parsed, or the last interval would end
        past the supported date range.
    """

    try:
        extent = time_extent_of(layer)
    except MalformedDimensionReferenceError as exc:
        logger.warning(f"Ignoring time dimension: {exc}")
        return None

    if extent is None:
        return None

    tokens = extent.split(",")
    if len(tokens) < 2:
        return None

    times = [parse_timestamp(token) for token in tokens]

    last = len(times) - 2
    intervals: list[TimeInterval] = []
    for index, start in enumerate(times[:-1]):
        if index < last or not intervals:
            stop = times[index + 1]
        else:
            try:
                stop = start + intervals[-1].duration
            except OverflowError as exc:
                raise MalformedTimestampError(tokens[-1]) from exc
        intervals.append(TimeInterval(start=start, stop=stop, label=tokens[index].strip()))

    return tuple(intervals)
