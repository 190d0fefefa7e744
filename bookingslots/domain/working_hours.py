"""
Resolve a professional's persisted weekly schedule into ParsedWorkingHours.

Persisted schedules come in several shapes:

* a mapping of weekday name to ``{enabled, startTime, endTime}``
* a legacy list of ``{day, enabled, startTime, endTime}`` records
* a wrapped ``{timezone, hours}`` object where ``hours`` is either of the above

Anything that cannot be understood is treated as closed rather than raised,
so one badly configured day never blocks the rest of the week.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from .models import WEEKDAY_NAMES, ParsedWorkingHours, WorkingHoursEntry
from .timezones import format_time_of_day, parse_time_of_day, resolve_timezone
from .exceptions import InvalidInputError

logger = logging.getLogger(__name__)


def _field(record: Mapping[str, Any], camel: str, snake: str) -> Any:
    if camel in record:
        return record[camel]
    return record.get(snake)


def _unwrap(raw: Any, professional_timezone: str) -> tuple[Any, str]:
    """Split a wrapped ``{timezone, hours}`` blob into its parts."""
    if isinstance(raw, Mapping) and "hours" in raw:
        embedded = raw.get("timezone")
        if embedded:
            try:
                resolve_timezone(embedded)
                return raw["hours"], embedded
            except InvalidInputError:
                logger.warning(
                    "Ignoring invalid embedded timezone %r, using %s",
                    embedded,
                    professional_timezone,
                )
        return raw["hours"], professional_timezone
    return raw, professional_timezone


def _records_by_day(hours: Any) -> Dict[str, Mapping[str, Any]]:
    """Index raw day records by lower-case weekday name. First occurrence wins."""
    records: Dict[str, Mapping[str, Any]] = {}

    if isinstance(hours, Mapping):
        items = [
            (str(day), record)
            for day, record in hours.items()
            if isinstance(record, Mapping)
        ]
    elif isinstance(hours, list):
        items = [
            (str(record.get("day", "")), record)
            for record in hours
            if isinstance(record, Mapping)
        ]
    else:
        if hours:
            logger.warning("Unrecognised working hours format: %s", type(hours).__name__)
        return records

    for day, record in items:
        key = day.strip().lower()
        if key not in WEEKDAY_NAMES:
            logger.warning("Ignoring working hours for unknown day %r", day)
            continue
        records.setdefault(key, record)

    return records


def _is_enabled(value: Any) -> bool:
    """Only a boolean, or its string spelling, switches a day on."""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _resolve_entry(day: str, record: Mapping[str, Any] | None) -> WorkingHoursEntry:
    if record is None or not _is_enabled(record.get("enabled")):
        return WorkingHoursEntry.closed(day)

    raw_start = _field(record, "startTime", "start_time")
    raw_end = _field(record, "endTime", "end_time")

    try:
        start_time = parse_time_of_day(raw_start)
        end_time = parse_time_of_day(raw_end)
    except ValueError as exc:
        logger.warning("Treating %s as closed: %s", day, exc)
        return WorkingHoursEntry.closed(day)

    if start_time >= end_time:
        logger.warning(
            "Treating %s as closed: start %s is not before end %s",
            day,
            format_time_of_day(start_time),
            format_time_of_day(end_time),
        )
        return WorkingHoursEntry.closed(day)

    return WorkingHoursEntry(day=day, enabled=True, start_time=start_time, end_time=end_time)


def parse_working_hours(raw: Any, professional_timezone: str) -> ParsedWorkingHours:
    """
    Parse a persisted weekly schedule.

    Args:
        raw: Persisted working hours blob (may be None)
        professional_timezone: IANA timezone the times are expressed in,
            unless the blob carries its own valid timezone

    Returns:
        ParsedWorkingHours with exactly seven entries, Monday to Sunday

    Raises:
        InvalidInputError: If ``professional_timezone`` is not a valid timezone
    """
    resolve_timezone(professional_timezone)

    hours, timezone = _unwrap(raw, professional_timezone)
    records = _records_by_day(hours)

    entries = tuple(_resolve_entry(day, records.get(day)) for day in WEEKDAY_NAMES)

    return ParsedWorkingHours(timezone=timezone, entries=entries)


def prepare_working_hours_for_storage(working_hours: ParsedWorkingHours) -> Dict[str, Any]:
    """Serialise working hours into the wrapped ``{timezone, hours}`` blob."""
    hours: List[Dict[str, Any]] = []

    for entry in working_hours.entries:
        hours.append(
            {
                "day": entry.day,
                "enabled": entry.is_open,
                "startTime": format_time_of_day(entry.start_time) if entry.start_time else None,
                "endTime": format_time_of_day(entry.end_time) if entry.end_time else None,
            }
        )

    return {"timezone": working_hours.timezone, "hours": hours}
