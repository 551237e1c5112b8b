"""Clock-driven appointment status sweep."""
import threading
from datetime import date, datetime, time, timedelta

from conftest import make_appointment
from salon.domain.settings.repository import ConfigurationRepository
from salon.domain.settings.service import NO_SHOW_GRACE_KEY
from salon.enums import AppointmentStatus
from salon.models import Appointment
import salon.services.status_automation as automation
from salon.services.status_automation import AppointmentSweeper, update_appointment_statuses

DAY = date(2030, 2, 1)
START = time(10, 0)
STARTS_AT = datetime.combine(DAY, START)


def status_of(db, appointment_id):
    db.expire_all()
    return db.query(Appointment).filter(Appointment.id == appointment_id).one().status


def test_future_appointments_are_untouched(db, staff, customer):
    appointment = make_appointment(db, customer, staff, DAY, START)
    summary = update_appointment_statuses(db, now=STARTS_AT - timedelta(minutes=1))

    assert summary["total_updated"] == 0
    assert status_of(db, appointment.id) == AppointmentStatus.SCHEDULED.value


def test_scheduled_and_confirmed_start_at_their_start_time(db, staff, customer):
    scheduled = make_appointment(db, customer, staff, DAY, START)
    confirmed = make_appointment(
        db, customer, staff, DAY, time(9, 0), status=AppointmentStatus.CONFIRMED
    )
    summary = update_appointment_statuses(db, now=STARTS_AT)

    assert summary["started"] == 2
    assert status_of(db, scheduled.id) == AppointmentStatus.IN_PROGRESS.value
    assert status_of(db, confirmed.id) == AppointmentStatus.IN_PROGRESS.value


def test_no_show_after_grace_period(db, staff, customer):
    appointment = make_appointment(db, customer, staff, DAY, START)

    update_appointment_statuses(db, now=STARTS_AT + timedelta(minutes=9))
    assert status_of(db, appointment.id) == AppointmentStatus.IN_PROGRESS.value

    summary = update_appointment_statuses(db, now=STARTS_AT + timedelta(minutes=11))
    assert summary["no_show"] == 1
    assert status_of(db, appointment.id) == AppointmentStatus.NO_SHOW.value


def test_checked_in_clients_are_never_marked_no_show(db, staff, customer):
    appointment = make_appointment(
        db,
        customer,
        staff,
        DAY,
        START,
        status=AppointmentStatus.IN_PROGRESS,
        checked_in_at=STARTS_AT - timedelta(minutes=5),
    )
    update_appointment_statuses(db, now=STARTS_AT + timedelta(hours=2))
    assert status_of(db, appointment.id) == AppointmentStatus.IN_PROGRESS.value


def test_terminal_appointments_are_untouched(db, staff, customer):
    ids = [
        make_appointment(db, customer, staff, DAY, START, status=status).id
        for status in (
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        )
    ]
    summary = update_appointment_statuses(db, now=STARTS_AT + timedelta(days=1))

    assert summary["total_updated"] == 0
    assert [status_of(db, i) for i in ids] == ["Completed", "Cancelled", "NoShow"]


def test_second_run_changes_nothing(db, staff, customer):
    make_appointment(db, customer, staff, DAY, START)
    now = STARTS_AT + timedelta(minutes=30)

    first = update_appointment_statuses(db, now=now)
    second = update_appointment_statuses(db, now=now)

    assert first["total_updated"] >= 1
    assert second["total_updated"] == 0


def test_grace_period_is_read_fresh_on_every_run(db, staff, customer):
    appointment = make_appointment(
        db, customer, staff, DAY, START, status=AppointmentStatus.IN_PROGRESS
    )
    ConfigurationRepository.set_value(db, NO_SHOW_GRACE_KEY, "30")
    db.commit()

    summary = update_appointment_statuses(db, now=STARTS_AT + timedelta(minutes=20))
    assert summary["grace_minutes"] == 30
    assert status_of(db, appointment.id) == AppointmentStatus.IN_PROGRESS.value

    ConfigurationRepository.set_value(db, NO_SHOW_GRACE_KEY, "15")
    db.commit()

    summary = update_appointment_statuses(db, now=STARTS_AT + timedelta(minutes=20))
    assert summary["grace_minutes"] == 15
    assert status_of(db, appointment.id) == AppointmentStatus.NO_SHOW.value


def test_sweeper_skips_when_previous_run_is_in_flight(session_factory, monkeypatch):
    sweeper = AppointmentSweeper(session_factory=session_factory)
    entered = threading.Event()
    release = threading.Event()
    results = []

    def slow_sweep(db, now=None):
        entered.set()
        release.wait(timeout=5)
        return {"started": 0, "no_show": 0, "total_updated": 0, "grace_minutes": 10}

    monkeypatch.setattr(automation, "update_appointment_statuses", slow_sweep)

    worker = threading.Thread(target=lambda: results.append(sweeper.run_once()))
    worker.start()
    try:
        assert entered.wait(timeout=5)
        assert sweeper.running
        assert sweeper.run_once() is None
        assert sweeper.skipped_runs == 1
    finally:
        release.set()
        worker.join(timeout=5)

    assert results[0]["total_updated"] == 0
    assert not sweeper.running
    assert sweeper.last_summary == results[0]


def test_sweeper_records_last_run(db, staff, customer):
    make_appointment(db, customer, staff, DAY, START)
    sweeper = AppointmentSweeper()
    now = STARTS_AT + timedelta(minutes=1)

    summary = sweeper.run_once(db, now=now)

    assert summary["started"] == 1
    assert sweeper.last_run_at == now
