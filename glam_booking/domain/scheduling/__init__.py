"""
Scheduling Domain

Availability and booking for a single salon chair:

- calendar.py      Business hours, open days, break and bookable range
- slots.py         Candidate start times for a service on a date
- availability.py  Half-open overlap checks against the day's appointments
- locks.py         Per-date critical section (local or Redis)
- engine.py        list_available_slots / commit_booking
- lifecycle.py     Status state machine and re-validated edits
- repository.py    Appointment queries
- router.py        /availability, /bookings, /appointments

Writes that can create or move an active interval always run inside the
per-date lock, and the partial unique index uq_appointments_active_slot
backs the no-overlap rule at the database level.
"""
