from datetime import date, timedelta

from healthbook.models.appointment import AppointmentStatus
from healthbook.schemas.notification import AppointmentEvent
from healthbook.services.appointment_service import can_transition
from healthbook.services.availability import (
    compute_available_slots, generate_slots, template_for_day, weekday_name
)
from healthbook.services.notification_service import (
    build_messages, email_subjects, format_appointment_date
)

MONDAY = date(2030, 1, 7)

TEMPLATE = [
    {"day": "Monday", "startTime": "09:00", "endTime": "11:00", "isAvailable": True},
    {"day": "Monday", "startTime": "10:00", "endTime": "12:00", "isAvailable": True},
    {"day": "Tuesday", "startTime": "09:00", "endTime": "10:00", "isAvailable": True},
    {"day": "Wednesday", "startTime": "09:00", "endTime": "10:00", "isAvailable": False},
]

class TestSlotGeneration:
    """Test slot generation from availability windows."""

    def test_weekday_name(self):
        assert weekday_name(MONDAY) == "Monday"
        assert weekday_name(date(2030, 1, 13)) == "Sunday"

    def test_half_hour_slots(self):
        assert generate_slots("09:00", "11:00", set()) == ["09:00", "09:30", "10:00", "10:30"]

    def test_booked_slots_skipped(self):
        assert generate_slots("09:00", "10:30", {"09:30"}) == ["09:00", "10:00"]

    def test_trailing_partial_slot_dropped(self):
        """Test a window that does not fit a whole slot at its end."""
        assert generate_slots("09:00", "10:15", set()) == ["09:00", "09:30"]
        assert generate_slots("09:00", "09:20", set()) == []

    def test_custom_slot_length(self):
        assert generate_slots("08:00", "10:00", set(), slot_minutes=60) == ["08:00", "09:00"]

    def test_unavailable_entries_ignored(self):
        wednesday = date(2030, 1, 9)

        assert template_for_day(TEMPLATE, wednesday) == []
        assert compute_available_slots(TEMPLATE, wednesday, []) == []

    def test_overlapping_windows_listed_once(self):
        slots = compute_available_slots(TEMPLATE, MONDAY, [])

        assert slots == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]

    def test_no_booked_slot_returned(self):
        booked = ["09:00", "10:30", "11:30"]
        slots = compute_available_slots(TEMPLATE, MONDAY, booked)

        assert slots == ["09:30", "10:00", "11:00"]
        assert not set(slots) & set(booked)

    def test_day_without_template(self):
        assert compute_available_slots(TEMPLATE, date(2030, 1, 12), []) == []

class TestStatusTransitions:
    """Test the appointment state machine."""

    def test_scheduled_can_finish(self):
        assert can_transition(AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED)
        assert can_transition(AppointmentStatus.SCHEDULED, AppointmentStatus.CANCELLED)

    def test_terminal_states(self):
        for terminal in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED):
            for target in AppointmentStatus:
                assert not can_transition(terminal, target)

class TestNotificationMessages:
    """Test appointment notification texts."""

    def test_date_format(self):
        assert format_appointment_date(MONDAY) == "1/7/2030"

    def test_new_appointment(self):
        patient_message, doctor_message = build_messages(
            AppointmentEvent.NEW, "Dana Doctor", "Pat Patient", MONDAY, "09:00"
        )

        assert patient_message == (
            "Your appointment with Dr. Dana Doctor on 1/7/2030 at 09:00 has been scheduled."
        )
        assert doctor_message == "New appointment with patient Pat Patient on 1/7/2030 at 09:00."

    def test_reminder_for_tomorrow(self):
        tomorrow = date.today() + timedelta(days=1)
        patient_message, doctor_message = build_messages(
            AppointmentEvent.REMINDER, "Dana Doctor", "Pat Patient", tomorrow, "09:00"
        )

        assert patient_message == (
            "Reminder: You have an appointment with Dr. Dana Doctor tomorrow at 09:00."
        )
        assert "patient Pat Patient tomorrow at 09:00" in doctor_message

    def test_reminder_for_later_date(self):
        """Test a reminder sent for another day names that day."""
        later = date.today() + timedelta(days=9)
        patient_message, doctor_message = build_messages(
            AppointmentEvent.REMINDER, "Dana Doctor", "Pat Patient", later, "09:00"
        )

        day = f"{later.month}/{later.day}/{later.year}"
        assert patient_message == (
            f"Reminder: You have an appointment with Dr. Dana Doctor on {day} at 09:00."
        )
        assert "tomorrow" not in doctor_message
        assert f"on {day} at 09:00" in doctor_message

    def test_subjects(self):
        assert email_subjects(AppointmentEvent.NEW)[0] == "Healthcare Appointment Confirmation"
        assert email_subjects(AppointmentEvent.CANCELLED) == (
            "Healthcare Appointment Update", "Healthcare Appointment Update"
        )
