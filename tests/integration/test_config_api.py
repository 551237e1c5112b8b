"""Runtime configuration and the manual sweep endpoint."""
from datetime import date, datetime, time

import pytest

from conftest import make_appointment
from salon.domain.settings.repository import ConfigurationRepository
from salon.domain.settings.service import NO_SHOW_GRACE_KEY, get_no_show_grace
from salon.services.status_automation import update_appointment_statuses


def test_grace_defaults_to_ten_minutes(db):
    assert get_no_show_grace(db) == 10


def test_manager_updates_grace(client, db, manager_headers):
    response = client.put("/config/no_show_grace", json={"value": 25}, headers=manager_headers)
    assert response.status_code == 200
    assert response.json() == {"key": "no_show_grace", "value": 25}

    assert client.get("/config", headers=manager_headers).json()["no_show_grace"] == "25"
    assert get_no_show_grace(db) == 25


@pytest.mark.parametrize("value", [-1, 241, "abc", None, "NaN", "inf"])
def test_out_of_range_grace_is_rejected(client, manager_headers, value):
    response = client.put("/config/no_show_grace", json={"value": value}, headers=manager_headers)
    assert response.status_code == 400


@pytest.mark.parametrize("value", [0, 240, "30"])
def test_grace_bounds_are_inclusive(client, manager_headers, value):
    assert client.put("/config/no_show_grace", json={"value": value}, headers=manager_headers).status_code == 200


def test_staff_cannot_touch_config(client, staff_headers):
    assert client.get("/config", headers=staff_headers).status_code == 403
    assert client.put("/config/no_show_grace", json={"value": 5}, headers=staff_headers).status_code == 403


def test_manual_sweep_run(client, db, staff, customer, manager_headers, staff_headers):
    make_appointment(db, customer, staff, date(2020, 1, 1), time(9, 0))

    assert client.post("/status/automation/run", headers=staff_headers).status_code == 403

    response = client.post("/status/automation/run", headers=manager_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["started"] == 1
    assert body["no_show"] == 1
    assert body["skipped"] is False

    state = client.get("/status/automation", headers=manager_headers).json()
    assert state["running"] is False
    assert state["last_summary"]["total_updated"] == 2


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "healthy"}
    db_health = client.get("/health/db").json()
    assert db_health["status"] == "healthy"


@pytest.mark.parametrize("stored,minutes", [("inf", 10), ("NaN", 10), ("abc", 10), ("500", 240), ("-5", 0), ("15.7", 15)])
def test_unusable_stored_grace_falls_back_or_clamps(db, stored, minutes):
    ConfigurationRepository.set_value(db, NO_SHOW_GRACE_KEY, stored)
    db.commit()
    assert get_no_show_grace(db) == minutes


def test_sweep_survives_a_corrupt_grace_row(db, staff, customer):
    ConfigurationRepository.set_value(db, NO_SHOW_GRACE_KEY, "inf")
    db.commit()
    make_appointment(db, customer, staff, date(2020, 1, 1), time(9, 0))

    summary = update_appointment_statuses(db, now=datetime(2020, 1, 1, 9, 11))
    assert summary["grace_minutes"] == 10
    assert summary["no_show"] == 1
