"""
Appointment slot computation.

Slots are wall-clock "HH:MM" strings derived from a doctor's weekly template.
There is no timezone or DST handling and no limit on how far ahead a caller
may look.
"""
from datetime import date
from typing import Any, Iterable, List, Mapping, Set

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

DEFAULT_SLOT_MINUTES = 30

def weekday_name(day: date) -> str:
    """English weekday name, independent of the process locale."""
    return WEEKDAYS[day.weekday()]

def parse_time(value: str) -> int:
    """Minutes since midnight for an ``HH:MM`` string."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)

def format_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"

def generate_slots(
    start_time: str,
    end_time: str,
    booked: Set[str],
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> List[str]:
    """Free slot starts between start and end; a trailing partial slot is dropped."""
    slots = []
    current = parse_time(start_time)
    end = parse_time(end_time)

    while current + slot_minutes <= end:
        candidate = format_time(current)
        if candidate not in booked:
            slots.append(candidate)
        current += slot_minutes

    return slots

def template_for_day(template: Iterable[Mapping[str, Any]], day: date) -> List[Mapping[str, Any]]:
    """Available template entries (camelCase doctor JSON) for the weekday of ``day``."""
    name = weekday_name(day)
    return [
        entry for entry in template
        if entry.get("day") == name and entry.get("isAvailable", True)
    ]

def compute_available_slots(
    template: Iterable[Mapping[str, Any]],
    day: date,
    booked_times: Iterable[str],
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> List[str]:
    """
    Walk every template entry for the weekday of ``day`` and return the slot
    start times not already taken.

    Args:
        template: the doctor's ``availableSlots`` entries
        day: the requested date
        booked_times: start times of the doctor's non-cancelled appointments
            on that date
        slot_minutes: slot length

    Returns:
        Start times in template order, each at most once.
    """
    booked = set(booked_times)
    seen: Set[str] = set()
    available = []

    for entry in template_for_day(template, day):
        for slot in generate_slots(entry["startTime"], entry["endTime"], booked, slot_minutes):
            if slot not in seen:
                seen.add(slot)
                available.append(slot)

    return available
