from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum

from backend.errors import MalformedTimetable, NotScheduled
from database.db import DocumentStore

TIMETABLE = "timetable"
RANGE_SEPARATORS = ("-", "–")  # hyphen, en dash


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def of(cls, value: date) -> "Weekday":
        # date.weekday(): Monday == 0
        return list(cls)[value.weekday()]


@dataclass(frozen=True)
class TimetableSlot:
    weekday: Weekday
    start: time
    end: time
    subjects: tuple[str, ...]

    @property
    def range_key(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"

    def contains(self, clock: time) -> bool:
        return self.start <= clock <= self.end


Timetable = dict[Weekday, list[TimetableSlot]]


def _parse_clock(value: str, *, key: str) -> time:
    hh, sep, mm = value.strip().partition(":")
    try:
        if not sep:
            raise ValueError(value)
        return time(int(hh), int(mm))
    except ValueError:
        raise MalformedTimetable(f'Invalid time "{value.strip()}" in slot "{key}".') from None


def parse_range(key: str) -> tuple[time, time]:
    normalized = key
    for separator in RANGE_SEPARATORS[1:]:
        normalized = normalized.replace(separator, RANGE_SEPARATORS[0])

    start_text, sep, end_text = normalized.partition(RANGE_SEPARATORS[0])
    if not sep:
        raise MalformedTimetable(f'Slot "{key}" is not an "HH:MM-HH:MM" range.')

    start = _parse_clock(start_text, key=key)
    end = _parse_clock(end_text, key=key)
    if end < start:
        raise MalformedTimetable(f'Slot "{key}" ends before it starts.')
    return start, end


def _clean_subject(value: object, *, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MalformedTimetable(f'Slot "{key}" lists an empty subject name.')
    subject = value.strip()
    # "|" separates the scan payload, "/" separates document paths.
    if "|" in subject or "/" in subject:
        raise MalformedTimetable(f'Subject "{subject}" must not contain "|" or "/".')
    return subject


def parse_day(weekday: Weekday, mapping: dict) -> list[TimetableSlot]:
    """Turn a stored `{"HH:MM-HH:MM": [subjects]}` mapping into slots, keeping its order."""
    slots: list[TimetableSlot] = []
    for key, subjects in mapping.items():
        if not isinstance(subjects, list):
            raise MalformedTimetable(f'Slot "{key}" must map to a list of subjects.')
        start, end = parse_range(key)
        slots.append(
            TimetableSlot(
                weekday=weekday,
                start=start,
                end=end,
                subjects=tuple(_clean_subject(s, key=key) for s in subjects),
            )
        )
    return slots


def dump_day(slots: list[TimetableSlot]) -> dict[str, list[str]]:
    return {slot.range_key: list(slot.subjects) for slot in slots}


def current_subjects(now: datetime, timetable: Timetable) -> set[str]:
    """Subjects of every slot running at `now`; both slot endpoints count as inside."""
    # slots are minute-granular, so compare at minute precision
    clock = now.time().replace(second=0, microsecond=0)
    subjects: set[str] = set()
    for slot in timetable.get(Weekday.of(now), []):
        if slot.contains(clock):
            subjects.update(slot.subjects)
    return subjects


def slot_for(subject: str, weekday: Weekday, timetable: Timetable, on: date) -> tuple[datetime, datetime]:
    """
    Return (starts_at, expires_at) of the first slot on `weekday` that lists
    `subject`, anchored to the date `on`.

    A subject listed in two slots the same day resolves to the first one.
    """
    for slot in timetable.get(weekday, []):
        if subject in slot.subjects:
            return datetime.combine(on, slot.start), datetime.combine(on, slot.end)
    raise NotScheduled(f'Subject "{subject}" is not scheduled on {weekday.value}.')


# -----------------------------
# Store access
# -----------------------------
async def load_timetable(store: DocumentStore, *weekdays: Weekday) -> Timetable:
    """Read the given weekdays (all seven when none are given); missing days are empty."""
    timetable: Timetable = {}
    for weekday in weekdays or tuple(Weekday):
        mapping = await store.get(TIMETABLE, weekday.value)
        timetable[weekday] = parse_day(weekday, mapping or {})
    return timetable


async def save_day(store: DocumentStore, weekday: Weekday, slots: list[TimetableSlot]) -> None:
    await store.set(TIMETABLE, weekday.value, dump_day(slots))
