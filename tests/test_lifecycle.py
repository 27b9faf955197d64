"""Tests for the appointment status machine and re-validated edits."""

from datetime import datetime, time
from decimal import Decimal

import pytest

from conftest import MONDAY, NOW, TUESDAY, WEDNESDAY
from glam_booking.domain.scheduling.lifecycle import (
    ALLOWED_TRANSITIONS,
    AppointmentLifecycle,
    validate_transition,
)
from glam_booking.domain.scheduling.locks import LocalDateLocks
from glam_booking.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
    TransientError,
)
from glam_booking.models import AppointmentStatus as S

STARTS_AT = datetime(2030, 6, 4, 10, 0)


class TestTransitionTable:
    @pytest.mark.parametrize(
        "current,target",
        [
            (S.SCHEDULED, S.CONFIRMED),
            (S.SCHEDULED, S.IN_PROGRESS),
            (S.SCHEDULED, S.CANCELLED),
            (S.CONFIRMED, S.IN_PROGRESS),
            (S.CONFIRMED, S.CANCELLED),
            (S.IN_PROGRESS, S.COMPLETED),
            (S.IN_PROGRESS, S.CANCELLED),
        ],
    )
    def test_legal_transitions(self, current, target):
        validate_transition(current, target, STARTS_AT, NOW)

    @pytest.mark.parametrize(
        "current,target",
        [
            (S.COMPLETED, S.SCHEDULED),
            (S.CONFIRMED, S.SCHEDULED),
            (S.IN_PROGRESS, S.SCHEDULED),
            (S.IN_PROGRESS, S.NO_SHOW),
            (S.SCHEDULED, S.COMPLETED),
            (S.CANCELLED, S.SCHEDULED),
            (S.NO_SHOW, S.CONFIRMED),
        ],
    )
    def test_illegal_transitions(self, current, target):
        with pytest.raises(InvalidTransitionError):
            validate_transition(current, target, STARTS_AT, NOW)

    def test_terminal_statuses_have_no_exits(self):
        for status in (S.COMPLETED, S.CANCELLED, S.NO_SHOW):
            assert ALLOWED_TRANSITIONS[status] == frozenset()

    def test_no_show_only_after_start(self):
        with pytest.raises(InvalidTransitionError, match="before the appointment has started"):
            validate_transition(S.CONFIRMED, S.NO_SHOW, STARTS_AT, datetime(2030, 6, 4, 9, 59))

        validate_transition(S.CONFIRMED, S.NO_SHOW, STARTS_AT, datetime(2030, 6, 4, 10, 20))


class TestStatusUpdates:
    def test_full_visit(self, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")

        lifecycle.confirm(appointment.id)
        lifecycle.transition(appointment.id, S.IN_PROGRESS)
        done = lifecycle.transition(appointment.id, "completed")

        assert done.status == S.COMPLETED.value

    def test_completed_to_scheduled_leaves_row_unchanged(self, db, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00", status=S.COMPLETED)

        with pytest.raises(InvalidTransitionError):
            lifecycle.update(appointment.id, status=S.SCHEDULED, notes="should not be saved")

        db.expire_all()
        stored = lifecycle.get(appointment.id)
        assert stored.status == S.COMPLETED.value
        assert stored.notes is None

    def test_same_status_is_not_a_transition(self, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00", status=S.COMPLETED)

        updated = lifecycle.update(appointment.id, status=S.COMPLETED, deposit_paid=True)

        assert updated.status == S.COMPLETED.value
        assert updated.deposit_paid is True

    def test_unknown_status(self, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")

        with pytest.raises(InvalidTransitionError, match="Unknown status"):
            lifecycle.update(appointment.id, status="archived")

    def test_unknown_appointment(self, lifecycle):
        with pytest.raises(NotFoundError):
            lifecycle.cancel(12345)

    def test_no_show_before_start_is_rejected(self, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")

        with pytest.raises(InvalidTransitionError):
            lifecycle.mark_no_show(appointment.id)

    def test_no_show_after_start(self, db, calendar, locks, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00", status=S.CONFIRMED)
        later = AppointmentLifecycle(db, calendar, locks, clock=lambda: datetime(2030, 6, 4, 10, 30))

        assert later.mark_no_show(appointment.id).status == S.NO_SHOW.value

    def test_cancel_frees_the_slot(self, scheduler, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")

        lifecycle.cancel(appointment.id)

        assert time(10, 0) in scheduler.list_available_slots(service.id, TUESDAY)

    def test_notes_and_deposit_on_a_terminal_appointment(self, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00", status=S.CANCELLED)

        updated = lifecycle.update(appointment.id, notes="Annulé par téléphone", deposit_paid=True)

        assert updated.notes == "Annulé par téléphone"
        assert updated.deposit_paid is True


class TestRescheduling:
    def test_same_slot_edit_succeeds(self, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")

        updated = lifecycle.update(appointment.id, day=TUESDAY, start=time(10, 0), notes="RAS")

        assert updated.start_time == time(10, 0)
        assert updated.notes == "RAS"

    def test_small_shift_overlapping_itself_succeeds(self, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")

        updated = lifecycle.update(appointment.id, start=time(10, 30))

        assert updated.start_time == time(10, 30)
        assert updated.end_time == time(11, 15)

    def test_move_onto_another_appointment_fails(self, db, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")
        add_appointment(service, TUESDAY, "14:00")

        with pytest.raises(SlotUnavailableError):
            lifecycle.update(appointment.id, start=time(14, 0))

        db.expire_all()
        assert lifecycle.get(appointment.id).start_time == time(10, 0)

    def test_move_to_another_day(self, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00", status=S.CONFIRMED)

        updated = lifecycle.update(appointment.id, day=WEDNESDAY, start=time(15, 30))

        assert updated.appointment_date == WEDNESDAY
        assert updated.start_time == time(15, 30)
        assert updated.status == S.CONFIRMED.value

    def test_move_to_closed_day_fails(self, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")

        with pytest.raises(SlotUnavailableError):
            lifecycle.update(appointment.id, day=MONDAY)

    def test_service_change_resnapshots_price_and_duration(self, lifecycle, service, service_factory, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")
        longer = service_factory(name="Soin complet", duration=90, price="95.00")

        updated = lifecycle.update(appointment.id, service_id=longer.id)

        assert updated.service_id == longer.id
        assert updated.end_time == time(11, 30)
        assert updated.total_price == Decimal("95.00")

    def test_duration_snapshot_survives_catalog_changes(self, db, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")
        service.duration_minutes = 120
        db.commit()

        updated = lifecycle.update(appointment.id, start=time(11, 0))

        assert updated.end_time == time(11, 45)

    def test_in_progress_cannot_be_moved(self, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00", status=S.IN_PROGRESS)

        with pytest.raises(InvalidTransitionError, match="reschedule"):
            lifecycle.update(appointment.id, start=time(11, 0))

    def test_status_and_move_are_applied_together(self, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")

        updated = lifecycle.update(appointment.id, status=S.CONFIRMED, start=time(16, 0))

        assert updated.status == S.CONFIRMED.value
        assert updated.start_time == time(16, 0)

    def test_rejected_move_also_rejects_the_status_change(self, db, lifecycle, service, add_appointment):
        appointment = add_appointment(service, TUESDAY, "10:00")
        add_appointment(service, TUESDAY, "16:00")

        with pytest.raises(SlotUnavailableError):
            lifecycle.update(appointment.id, status=S.CONFIRMED, start=time(16, 0))

        db.expire_all()
        assert lifecycle.get(appointment.id).status == S.SCHEDULED.value

    def test_move_waits_for_the_target_date_lock(self, db, calendar, service, add_appointment):
        locks = LocalDateLocks(timeout_seconds=0.05)
        lifecycle = AppointmentLifecycle(db, calendar, locks, clock=lambda: NOW)
        appointment = add_appointment(service, TUESDAY, "10:00")

        with locks.hold(WEDNESDAY):
            with pytest.raises(TransientError):
                lifecycle.update(appointment.id, day=WEDNESDAY)
