"""
Scaling schedule: parse the JSON rule list and pick the unit count for a moment in time.

Rules look like {"WeekDays": [1, 2], "StartTime": "06:00:00", "StopTime": "18:00:00", "Units": 3}.
Weekdays count from 0 = Sunday. Windows are start-inclusive, stop-exclusive and never
cross midnight; the first declared rule that matches wins.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, time, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tzlocal.windows_tz import win_tz

from signalr_scaler.errors import ConfigurationError

logger = logging.getLogger(__name__)

TIME_FORMATS = ("%H:%M:%S", "%H:%M")
REQUIRED_FIELDS = ("WeekDays", "StartTime", "StopTime", "Units")


@dataclass(frozen=True)
class ScheduleRule:
    weekdays: frozenset
    start_time: time
    stop_time: time
    units: int

    def matches(self, moment: datetime) -> bool:
        """True if moment falls on one of the rule's weekdays, inside its window."""
        if sunday_based_weekday(moment) not in self.weekdays:
            return False
        start = datetime.combine(moment.date(), self.start_time, tzinfo=moment.tzinfo)
        stop = datetime.combine(moment.date(), self.stop_time, tzinfo=moment.tzinfo)
        return start <= moment < stop


def sunday_based_weekday(moment: datetime) -> int:
    # datetime.weekday() is 0 = Monday
    return (moment.weekday() + 1) % 7


def resolve_time_zone(name: str) -> tzinfo:
    """Load a zone by IANA key or by Windows name (e.g. 'W. Europe Standard Time')."""
    if not name or not name.strip():
        raise ConfigurationError("Time zone name is empty")
    name = name.strip()
    key = win_tz.get(name, name)
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        # a tzdata directory name such as "Europe" raises IsADirectoryError
        raise ConfigurationError(f"Unknown time zone: {name}") from e


def to_zone(now: datetime, zone: tzinfo) -> datetime:
    """Shift now into zone. Naive values are taken as host local time."""
    if now.tzinfo is None:
        now = now.astimezone()
    return now.astimezone(zone)


def _parse_time(value, field: str, index: int) -> time:
    if isinstance(value, str):
        for fmt in TIME_FORMATS:
            try:
                return datetime.strptime(value.strip(), fmt).time()
            except ValueError:
                continue
    raise ConfigurationError(f"Rule {index}: {field} must be HH:mm:ss, got {value!r}")


def _parse_weekdays(value, index: int) -> frozenset:
    days = value if isinstance(value, list) else [value]
    for day in days:
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise ConfigurationError(f"Rule {index}: weekday must be an integer 0-6, got {day!r}")
    return frozenset(days)


def _parse_units(value, index: int) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"Rule {index}: Units must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ConfigurationError(f"Rule {index}: Units must be an integer, got {value!r}")


def parse_rule(raw, index: int = 0) -> ScheduleRule:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Rule {index}: expected an object, got {type(raw).__name__}")
    missing = [field for field in REQUIRED_FIELDS if field not in raw]
    if missing:
        raise ConfigurationError(f"Rule {index}: missing {', '.join(missing)}")
    return ScheduleRule(
        weekdays=_parse_weekdays(raw["WeekDays"], index),
        start_time=_parse_time(raw["StartTime"], "StartTime", index),
        stop_time=_parse_time(raw["StopTime"], "StopTime", index),
        units=_parse_units(raw["Units"], index),
    )


def parse_schedule(text: str) -> list[ScheduleRule]:
    """Parse and validate the whole schedule. Order is kept: it decides which rule wins."""
    if text is None or not text.strip():
        raise ConfigurationError("Scaling schedule is empty")
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Scaling schedule is not valid JSON: {e}") from e
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        raise ConfigurationError("Scaling schedule must be a JSON array of rules")
    rules = [parse_rule(item, index) for index, item in enumerate(raw)]
    for index, rule in enumerate(rules):
        if rule.stop_time <= rule.start_time:
            logger.warning(f"Rule {index} stops at or before it starts and will never match")
    return rules


def find_matching_rule(moment: datetime, rules) -> ScheduleRule | None:
    for rule in rules:
        if rule.matches(moment):
            return rule
    return None


def evaluate(now: datetime, time_zone_id: str, rules, default_units: int) -> int:
    """Unit count wanted at now, evaluated in the schedule's time zone."""
    moment = to_zone(now, resolve_time_zone(time_zone_id))
    rule = find_matching_rule(moment, rules)
    if rule is None:
        logger.info(f"No schedule rule matches {moment:%A %H:%M:%S %Z}, using default of {default_units} unit(s)")
        return default_units
    logger.info(
        f"Rule {rule.start_time}-{rule.stop_time} matches {moment:%A %H:%M:%S %Z}: {rule.units} unit(s)"
    )
    return rule.units
