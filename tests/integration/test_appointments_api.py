"""Booking, rescheduling and lifecycle endpoints."""
from datetime import datetime

import pytest

from conftest import auth_headers, make_appointment, make_service, make_user
from salon.domain.scheduling.repository import AppointmentRepository
from salon.enums import AppointmentStatus, Role
from salon.models import Appointment, AppointmentPaymentItem

DAY = "2030-03-04"


def book(client, headers, client_id, time_, staff_id=None, services=(), **extra):
    payload = {
        "clientId": client_id,
        "date": DAY,
        "time": time_,
        "services": [{"serviceId": s} for s in services],
        **extra,
    }
    if staff_id is not None:
        payload["staffId"] = staff_id
    return client.post("/appointments", json=payload, headers=headers)


def test_overlapping_booking_for_same_staff_is_rejected(client, staff, customer, haircut, manager_headers):
    first = book(client, manager_headers, customer.id, "09:00", staff.id, [haircut.id])
    assert first.status_code == 201
    assert first.json()["staffId"] == staff.id
    assert first.json()["durationMinutes"] == 30

    overlap = book(client, manager_headers, customer.id, "09:15", staff.id, [haircut.id])
    assert overlap.status_code == 409

    adjacent = book(client, manager_headers, customer.id, "09:30", staff.id, [haircut.id])
    assert adjacent.status_code == 201


def test_auto_assignment_fills_staff_in_id_order(client, db, customer, haircut, manager_headers):
    staff_ids = [
        make_user(db, f"Stylist {n}", f"stylist{n}@salon.test", Role.STAFF).id for n in range(3)
    ]

    assigned = [book(client, manager_headers, customer.id, "10:00", services=[haircut.id]) for _ in range(3)]
    assert [r.status_code for r in assigned] == [201, 201, 201]
    assert [r.json()["staffId"] for r in assigned] == staff_ids

    fourth = book(client, manager_headers, customer.id, "10:00", services=[haircut.id])
    assert fourth.status_code == 409


def test_booking_requires_client_date_and_time(client, staff, manager_headers):
    response = client.post("/appointments", json={"date": DAY, "time": "09:00"}, headers=manager_headers)
    assert response.status_code == 400

    response = client.post(
        "/appointments", json={"clientId": 1, "date": "03/04/2030", "time": "09:00"}, headers=manager_headers
    )
    assert response.status_code == 400


def test_booking_for_unknown_client_or_inactive_staff_is_rejected(client, db, customer, manager_headers):
    gone = make_user(db, "Gone Stylist", "gone@salon.test", Role.STAFF, active=False)

    assert book(client, manager_headers, 9999, "09:00").status_code == 400
    assert book(client, manager_headers, customer.id, "09:00", gone.id).status_code == 400


def test_unknown_services_count_as_default_slot(client, staff, customer, manager_headers):
    color = book(client, manager_headers, customer.id, "11:00", staff.id, [9999])
    assert color.status_code == 201
    assert color.json()["durationMinutes"] == 30


def test_clients_book_only_for_themselves(client, db, staff, customer, customer_headers):
    other = make_user(db, "Other Client", "other@salon.test", Role.CLIENT)

    assert book(client, customer_headers, customer.id, "12:00", staff.id).status_code == 201
    assert book(client, customer_headers, other.id, "13:00", staff.id).status_code == 403


def test_booking_requires_authentication(client, customer):
    assert book(client, {}, customer.id, "09:00").status_code == 401


def test_failed_insert_leaves_no_partial_appointment(client, db, staff, customer, haircut, manager_headers, monkeypatch):
    def broken_payments(db_, appointment_id, rows):
        raise RuntimeError("payment insert failed")

    monkeypatch.setattr(AppointmentRepository, "add_payment_items", staticmethod(broken_payments))

    with pytest.raises(RuntimeError):
        book(
            client,
            manager_headers,
            customer.id,
            "15:00",
            staff.id,
            [haircut.id],
            payments=[{"method": "cash", "amount": 50}],
        )

    db.expire_all()
    assert db.query(Appointment).count() == 0
    assert db.query(AppointmentPaymentItem).count() == 0


def test_list_and_detail(client, staff, customer, haircut, manager_headers, customer_headers):
    created = book(
        client,
        manager_headers,
        customer.id,
        "09:00",
        staff.id,
        [haircut.id],
        payments=[{"method": "pix", "amount": 50}],
        notes="first visit",
    ).json()

    listing = client.get("/appointments", params={"staffIds": str(staff.id)}, headers=manager_headers)
    assert listing.status_code == 200
    row = listing.json()[0]
    assert row["services"] == "Haircut"
    assert row["time"] == "09:00:00"
    assert row["endTime"] == "09:30:00"
    assert row["clientName"] == customer.name

    detail = client.get(f"/appointments/{created['id']}", headers=customer_headers)
    assert detail.status_code == 200
    body = detail.json()
    assert body["payments"][0]["method"] == "pix"
    assert body["services"][0]["serviceId"] == haircut.id
    assert body["notes"] == "first visit"

    assert client.get("/appointments/9999", headers=manager_headers).status_code == 404


def test_clients_only_list_their_own(client, db, staff, customer, customer_headers):
    other = make_user(db, "Other Client", "other@salon.test", Role.CLIENT)
    make_appointment(db, customer, staff, datetime(2030, 3, 4).date(), datetime(2030, 3, 4, 9).time())
    make_appointment(db, other, staff, datetime(2030, 3, 4).date(), datetime(2030, 3, 4, 10).time())

    listing = client.get("/appointments", headers=customer_headers).json()
    assert [a["clientId"] for a in listing] == [customer.id]


def test_availability_lookup(client, db, staff, customer, haircut, manager_headers):
    second = make_user(db, "Second Stylist", "second@salon.test", Role.STAFF)
    book(client, manager_headers, customer.id, "09:00", staff.id, [haircut.id])

    response = client.get(
        "/appointments/availability",
        params={"date": DAY, "time": "09:10", "serviceIds": str(haircut.id)},
        headers=manager_headers,
    )
    assert response.status_code == 200
    assert response.json()["freeStaffIds"] == [second.id]
    assert response.json()["suggestedStaffId"] == second.id


# ============================================================================
# UPDATES
# ============================================================================


def test_update_unknown_appointment_is_404(client, manager_headers):
    response = client.put("/appointments/9999", json={"notes": "x"}, headers=manager_headers)
    assert response.status_code == 404


def test_reschedule_checks_conflicts_but_not_against_itself(client, staff, customer, haircut, manager_headers):
    first = book(client, manager_headers, customer.id, "09:00", staff.id, [haircut.id]).json()
    second = book(client, manager_headers, customer.id, "10:00", staff.id, [haircut.id]).json()

    # shifting within its own slot is fine
    moved = client.put(f"/appointments/{first['id']}", json={"time": "09:15"}, headers=manager_headers)
    assert moved.status_code == 200

    clash = client.put(f"/appointments/{second['id']}", json={"time": "09:30"}, headers=manager_headers)
    assert clash.status_code == 409


def test_longer_services_on_update_recheck_availability(client, db, staff, customer, haircut, manager_headers):
    color = make_service(db, "Color", 90)
    first = book(client, manager_headers, customer.id, "09:00", staff.id, [haircut.id]).json()
    book(client, manager_headers, customer.id, "10:00", staff.id, [haircut.id])

    response = client.put(
        f"/appointments/{first['id']}",
        json={"services": [{"serviceId": color.id}]},
        headers=manager_headers,
    )
    assert response.status_code == 409


def test_update_replaces_services_only_when_given(client, db, staff, customer, haircut, manager_headers):
    beard = make_service(db, "Beard", 15)
    created = book(client, manager_headers, customer.id, "09:00", staff.id, [haircut.id]).json()

    notes_only = client.put(f"/appointments/{created['id']}", json={"notes": "late"}, headers=manager_headers)
    assert notes_only.json()["durationMinutes"] == 30

    replaced = client.put(
        f"/appointments/{created['id']}",
        json={"services": [{"serviceId": beard.id}]},
        headers=manager_headers,
    )
    assert replaced.status_code == 200
    assert replaced.json()["durationMinutes"] == 15


def test_update_status_follows_transition_table(client, staff, customer, manager_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()

    bad = client.put(f"/appointments/{created['id']}", json={"status": "Completed"}, headers=manager_headers)
    assert bad.status_code == 400

    ok = client.put(f"/appointments/{created['id']}", json={"status": "Confirmed"}, headers=manager_headers)
    assert ok.status_code == 200
    assert ok.json()["status"] == "Confirmed"


def test_terminal_appointments_cannot_be_edited(client, db, staff, customer, manager_headers):
    done = make_appointment(
        db, customer, staff, datetime(2030, 3, 4).date(), datetime(2030, 3, 4, 9).time(),
        status=AppointmentStatus.COMPLETED,
    )
    response = client.put(f"/appointments/{done.id}", json={"notes": "x"}, headers=manager_headers)
    assert response.status_code == 400


# ============================================================================
# LIFECYCLE
# ============================================================================


def test_manager_confirms_and_confirming_twice_is_a_no_op(client, staff, customer, manager_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()

    first = client.post(f"/appointments/{created['id']}/confirm", headers=manager_headers)
    assert first.status_code == 200
    assert first.json()["status"] == "Confirmed"

    again = client.post(f"/appointments/{created['id']}/confirm", headers=manager_headers)
    assert again.status_code == 200
    assert again.json()["message"] == "Appointment already confirmed"


def test_staff_cannot_confirm(client, staff, customer, staff_headers, manager_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()
    assert client.post(f"/appointments/{created['id']}/confirm", headers=staff_headers).status_code == 403


def test_cancelled_appointment_cannot_be_confirmed(client, staff, customer, manager_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()
    client.post(f"/appointments/{created['id']}/cancel", headers=manager_headers)

    response = client.post(f"/appointments/{created['id']}/confirm", headers=manager_headers)
    assert response.status_code == 400


def test_presence_is_client_only_and_own_only(client, db, staff, customer, customer_headers, manager_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()
    other = make_user(db, "Other Client", "other@salon.test", Role.CLIENT)

    assert client.post(f"/appointments/{created['id']}/presence", headers=manager_headers).status_code == 403
    assert (
        client.post(f"/appointments/{created['id']}/presence", headers=auth_headers(other, Role.CLIENT)).status_code
        == 403
    )
    assert client.post("/appointments/9999/presence", headers=customer_headers).status_code == 404

    response = client.post(f"/appointments/{created['id']}/presence", headers=customer_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "InProgress"

    again = client.post(f"/appointments/{created['id']}/presence", headers=customer_headers)
    assert again.status_code == 400


def test_cancel_releases_the_slot(client, staff, customer, customer_headers, manager_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()

    cancelled = client.post(f"/appointments/{created['id']}/cancel", headers=customer_headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "Cancelled"

    assert book(client, manager_headers, customer.id, "09:00", staff.id).status_code == 201


def test_clients_cannot_cancel_someone_elses_appointment(client, db, staff, customer, manager_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()
    other = make_user(db, "Other Client", "other@salon.test", Role.CLIENT)

    response = client.post(f"/appointments/{created['id']}/cancel", headers=auth_headers(other, Role.CLIENT))
    assert response.status_code == 403


def test_in_progress_appointment_cannot_be_cancelled(client, staff, customer, customer_headers, manager_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()
    client.post(f"/appointments/{created['id']}/presence", headers=customer_headers)

    response = client.post(f"/appointments/{created['id']}/cancel", headers=manager_headers)
    assert response.status_code == 400


def test_delete_is_a_soft_cancel_and_owner_is_refused(client, db, staff, customer, manager_headers, owner_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()

    assert client.delete(f"/appointments/{created['id']}", headers=owner_headers).status_code == 403

    response = client.delete(f"/appointments/{created['id']}", headers=manager_headers)
    assert response.status_code == 200
    db.expire_all()
    assert db.query(Appointment).filter(Appointment.id == created["id"]).one().status == "Cancelled"


def test_complete_requires_an_in_progress_appointment(client, staff, customer, customer_headers, staff_headers):
    created = book(client, staff_headers, customer.id, "09:00", staff.id).json()

    assert client.post(f"/appointments/{created['id']}/complete", headers=staff_headers).status_code == 400
    assert client.post(f"/appointments/{created['id']}/complete", headers=customer_headers).status_code == 403

    client.post(f"/appointments/{created['id']}/presence", headers=customer_headers)
    response = client.post(f"/appointments/{created['id']}/complete", headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "Completed"


def test_clients_cannot_confirm_or_complete_through_an_edit(client, db, staff, customer, customer_headers, manager_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()

    confirm = client.put(f"/appointments/{created['id']}", json={"status": "Confirmed"}, headers=customer_headers)
    assert confirm.status_code == 403

    client.post(f"/appointments/{created['id']}/presence", headers=customer_headers)
    complete = client.put(f"/appointments/{created['id']}", json={"status": "Completed"}, headers=customer_headers)
    assert complete.status_code == 403

    db.expire_all()
    assert db.get(Appointment, created["id"]).status == "InProgress"


def test_staff_cannot_confirm_through_an_edit(client, staff, customer, staff_headers, manager_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()
    response = client.put(f"/appointments/{created['id']}", json={"status": "Confirmed"}, headers=staff_headers)
    assert response.status_code == 403


def test_edit_only_confirms_or_cancels(client, staff, customer, customer_headers, manager_headers):
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()

    for status in ("InProgress", "NoShow", "Completed", "Lost"):
        response = client.put(f"/appointments/{created['id']}", json={"status": status}, headers=manager_headers)
        assert response.status_code == 400, status

    cancelled = client.put(f"/appointments/{created['id']}", json={"status": "Cancelled"}, headers=customer_headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "Cancelled"


def test_confirming_through_an_edit_notifies_the_client(client, staff, customer, manager_headers, monkeypatch):
    sent = []

    async def record(notice):
        sent.append(notice)

    monkeypatch.setattr("salon.domain.scheduling.router.send_client_notice", record)
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()

    response = client.put(f"/appointments/{created['id']}", json={"status": "Confirmed"}, headers=manager_headers)
    assert response.status_code == 200
    assert [(n["type"], n["appointmentId"], n["clientId"]) for n in sent] == [
        ("confirmation", created["id"], customer.id)
    ]

    client.put(f"/appointments/{created['id']}", json={"notes": "Bring photos"}, headers=manager_headers)
    assert len(sent) == 1


def test_confirm_endpoint_queues_one_notice(client, staff, customer, manager_headers, monkeypatch):
    sent = []

    async def record(notice):
        sent.append(notice)

    monkeypatch.setattr("salon.domain.scheduling.router.send_client_notice", record)
    created = book(client, manager_headers, customer.id, "09:00", staff.id).json()

    client.post(f"/appointments/{created['id']}/confirm", headers=manager_headers)
    client.post(f"/appointments/{created['id']}/confirm", headers=manager_headers)
    assert len(sent) == 1
