import logging

from backend.services.timetable import Weekday, parse_day, save_day
from database.db import DocumentStore

logger = logging.getLogger(__name__)

VALID_SUBJECTS = "validSubjects"

DEFAULT_TIMETABLE: dict[Weekday, dict[str, list[str]]] = {
    Weekday.MONDAY: {
        "08:30-09:30": ["Artificial Intelligence 700", "Networks 731"],
        "09:30-10:30": ["Networks 730"],
        "10:00-11:30": ["Machine Learning 700", "Programming 741"],
        "11:30-12:30": ["PROG-JAVA 731"],
        "12:30-13:30": ["Software Engineering 700"],
        "13:30-14:30": ["IT Strategic Management 731"],
        "14:30-15:30": ["Programming 741", "Cyber Security 700"],
    },
    Weekday.TUESDAY: {
        "08:30-09:30": ["PROG-JAVA 731"],
        "09:30-10:30": ["Software Engineering 700"],
        "10:30-11:30": ["Networks 731", "Programming 741"],
        "11:30-12:30": ["IT Strategic Management 731"],
        "12:30-13:30": ["Software Engineering 700", "Machine Learning 700"],
        "13:30-14:30": ["Human Computer Interaction 700"],
        "14:30-15:30": ["Cyber Security 700", "Artificial Intelligence 700"],
    },
    Weekday.WEDNESDAY: {
        "08:30-09:30": ["Networks 731", "Programming 741"],
        "09:30-10:30": ["IT Strategic Management 731"],
        "10:30-11:30": ["Software Engineering 700"],
        "11:30-12:30": ["PROG-JAVA 731"],
        "12:30-13:30": ["Artificial Intelligence 700"],
        "13:30-14:30": ["Human Computer Interaction 700"],
        "14:30-15:30": ["Cyber Security 700"],
    },
    Weekday.THURSDAY: {
        "08:30-09:30": ["Programming 741"],
        "09:30-10:30": ["Artificial Intelligence 700"],
        "10:30-11:30": ["Networks 731"],
        "11:30-12:30": ["PROG-JAVA 731"],
        "12:30-13:30": ["Machine Learning 700"],
        "13:30-14:30": ["IT Strategic Management 731", "Networks 731"],
    },
    Weekday.FRIDAY: {
        "08:30-09:30": ["Cyber Security 700"],
        "09:30-10:30": ["Machine Learning 700"],
        "10:30-11:30": ["Programming 741"],
        "11:30-12:30": ["PROG-JAVA 731"],
        "12:30-13:30": ["Artificial Intelligence 700"],
        "13:30-14:30": ["Human Computer Interaction 700"],
        "14:30-15:30": ["Software Engineering 700"],
        "15:30-16:30": ["IT Strategic Management 731", "Networks 731"],
    },
    Weekday.SATURDAY: {
        "00:00-22:30": ["Cyber Security 700"],
    },
    Weekday.SUNDAY: {
        "00:00-22:30": ["Cyber Security 700"],
    },
}


async def seed_timetable(
    store: DocumentStore,
    timetable: dict[Weekday, dict[str, list[str]]] | None = None,
) -> int:
    """
    Write every weekday of `timetable` (the default week when omitted) and add
    any subject not yet listed under `validSubjects`.

    Returns the number of subjects newly added to `validSubjects`.
    """
    subjects: set[str] = set()
    for weekday, mapping in (timetable or DEFAULT_TIMETABLE).items():
        slots = parse_day(weekday, mapping)
        await save_day(store, weekday, slots)
        for slot in slots:
            subjects.update(slot.subjects)

    existing = {doc.id for doc in await store.list(VALID_SUBJECTS)}
    added = 0
    for subject in sorted(subjects - existing):
        await store.set(VALID_SUBJECTS, subject, {"name": subject})
        added += 1

    logger.info("Seeded timetable for %d subject(s), %d new", len(subjects), added)
    return added
