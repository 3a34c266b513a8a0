from datetime import date, timedelta

from zentra.models import AftercareTemplate, Appointment, Client, LoyaltyTransaction

TOMORROW = (date.today() + timedelta(days=1)).isoformat()


# --- POST /appointments ---
def test_create_appointment_for_existing_client(client, seed_service, seed_client, seed_staff):
    response = client.post(
        "/appointments",
        json={
            "serviceId": seed_service.id,
            "clientId": seed_client.id,
            "staffId": seed_staff.id,
            "date": TOMORROW,
            "startTime": "10:00",
        },
    )
    assert response.status_code == 201

    data = response.json()
    assert data["endTime"] == "11:30"
    assert data["duration"] == 90
    assert data["price"] == 85.0
    assert data["status"] == "confirmed"
    assert data["clientName"] == "Jordan Lee"
    assert data["clientEmail"] == "jordan@example.com"
    assert data["staffName"] == "Priya Shah"
    assert data["payment"]["status"] == "pending"
    assert data["payment"]["depositAmount"] == 17.0
    assert data["payment"]["remainingBalance"] == 85.0


def test_create_walk_in_appointment_with_custom_price(client, seed_service):
    response = client.post(
        "/appointments",
        json={
            "serviceId": seed_service.id,
            "clientName": "Walk-in",
            "date": TOMORROW,
            "startTime": "23:30",
            "duration": 60,
            "price": 50,
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["clientId"] is None
    assert data["endTime"] == "00:30"
    assert data["payment"]["depositAmount"] == 10.0


def test_create_appointment_needs_a_client(client, seed_service):
    response = client.post(
        "/appointments", json={"serviceId": seed_service.id, "date": TOMORROW, "startTime": "10:00"}
    )
    assert response.status_code == 400


def test_create_appointment_unknown_service(client, seed_business):
    response = client.post(
        "/appointments", json={"serviceId": 999, "clientName": "Walk-in", "date": TOMORROW, "startTime": "10:00"}
    )
    assert response.status_code == 404


def test_create_appointment_rejects_bad_time(client, seed_service):
    response = client.post(
        "/appointments",
        json={"serviceId": seed_service.id, "clientName": "Walk-in", "date": TOMORROW, "startTime": "9am"},
    )
    assert response.status_code == 422


# --- GET /appointments ---
def test_list_appointments_by_range(client, seed_appointment):
    tomorrow = date.today() + timedelta(days=1)
    in_range = client.get("/appointments", params={"start": tomorrow.isoformat(), "end": tomorrow.isoformat()})
    out_of_range = client.get("/appointments", params={"start": (tomorrow + timedelta(days=1)).isoformat()})
    assert [a["id"] for a in in_range.json()] == [seed_appointment.id]
    assert out_of_range.json() == []


# --- PATCH /appointments/{id} ---
def test_reschedule_resets_reminder(client, seed_appointment, db_session):
    seed_appointment.reminder_sent = True
    db_session.commit()

    new_date = (date.today() + timedelta(days=3)).isoformat()
    response = client.patch(f"/appointments/{seed_appointment.id}", json={"date": new_date, "startTime": "14:15"})
    assert response.status_code == 200

    data = response.json()
    assert data["date"] == new_date
    assert data["startTime"] == "14:15"
    assert data["endTime"] == "15:45"
    assert data["reminderSent"] is False



def test_reprice_paid_appointment_reopens_balance(client, seed_appointment):
    client.post(f"/appointments/{seed_appointment.id}/payment", json={"amount": 85, "method": "card"})

    repriced = client.patch(f"/appointments/{seed_appointment.id}", json={"price": 100})
    payment = repriced.json()["payment"]
    assert payment["status"] == "partial"
    assert payment["remainingBalance"] == 15.0

    balance = client.post(f"/appointments/{seed_appointment.id}/payment", json={"amount": 15, "method": "cash"})
    assert balance.status_code == 200
    assert balance.json()["payment"]["status"] == "paid"


def test_reprice_below_amount_paid_marks_paid(client, seed_appointment):
    client.post(f"/appointments/{seed_appointment.id}/payment", json={"amount": 50, "method": "card"})

    payment = client.patch(f"/appointments/{seed_appointment.id}", json={"price": 45}).json()["payment"]
    assert payment["status"] == "paid"
    assert payment["remainingBalance"] == 0.0


def test_reschedule_onto_booked_staff_slot(client, seed_service, seed_staff):
    booking = {"serviceId": seed_service.id, "clientName": "Walk-in", "staffId": seed_staff.id, "date": TOMORROW}
    client.post("/appointments", json={**booking, "startTime": "10:00"})
    later = client.post("/appointments", json={**booking, "startTime": "13:00"}).json()

    clash = client.patch(f"/appointments/{later['id']}", json={"startTime": "11:00"})
    assert clash.status_code == 409

    # Moving within its own slot is not a clash with itself
    assert client.patch(f"/appointments/{later['id']}", json={"startTime": "13:30"}).status_code == 200

# --- PATCH /appointments/{id}/status ---
def test_completing_appointment_credits_client(client, loyalty_business, seed_appointment, seed_client, db_session):
    response = client.patch(f"/appointments/{seed_appointment.id}/status", json={"status": "completed"})
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    db_session.expire_all()
    updated = db_session.get(Client, seed_client.id)
    assert updated.total_visits == 1
    assert updated.total_spent == 85.0
    assert updated.loyalty_points == 85
    assert updated.last_visit.date() == seed_appointment.date

    transaction = db_session.query(LoyaltyTransaction).one()
    assert transaction.reason == "Appointment completed"
    assert transaction.related_id == str(seed_appointment.id)


def test_completing_twice_does_not_double_credit(client, loyalty_business, seed_appointment, seed_client, db_session):
    client.patch(f"/appointments/{seed_appointment.id}/status", json={"status": "completed"})
    client.patch(f"/appointments/{seed_appointment.id}/status", json={"status": "completed"})

    db_session.expire_all()
    assert db_session.get(Client, seed_client.id).total_visits == 1


def test_reopened_and_recompleted_appointment_credits_once(
    client, loyalty_business, seed_appointment, seed_client, db_session
):
    for status in ("completed", "confirmed", "completed"):
        assert client.patch(f"/appointments/{seed_appointment.id}/status", json={"status": status}).status_code == 200

    db_session.expire_all()
    updated = db_session.get(Client, seed_client.id)
    assert updated.total_visits == 1
    assert updated.total_spent == 85.0
    assert updated.loyalty_points == 85
    assert db_session.query(LoyaltyTransaction).count() == 1


def test_completing_link_paid_appointment_skips_spend(client, loyalty_business, seed_appointment, seed_client, db_session):
    seed_appointment.paid_via_link = True
    seed_appointment.amount_paid = 85.0
    seed_appointment.payment_status = "paid"
    db_session.commit()

    client.patch(f"/appointments/{seed_appointment.id}/status", json={"status": "completed"})

    db_session.expire_all()
    updated = db_session.get(Client, seed_client.id)
    assert updated.total_visits == 1
    assert updated.total_spent == 0.0
    assert updated.loyalty_points == 0


def test_invalid_status(client, seed_appointment):
    response = client.patch(f"/appointments/{seed_appointment.id}/status", json={"status": "done"})
    assert response.status_code == 422


# --- POST /appointments/{id}/payment ---
def test_deposit_then_balance_payment(client, seed_appointment):
    deposit = client.post(f"/appointments/{seed_appointment.id}/payment", json={"amount": 17, "method": "card"})
    assert deposit.status_code == 200
    payment = deposit.json()["payment"]
    assert payment["status"] == "partial"
    assert payment["depositPaid"] is True
    assert payment["remainingBalance"] == 68.0

    balance = client.post(f"/appointments/{seed_appointment.id}/payment", json={"amount": 68, "method": "cash"})
    payment = balance.json()["payment"]
    assert payment["status"] == "paid"
    assert payment["method"] == "cash"
    assert payment["amount"] == 85.0
    assert payment["remainingBalance"] == 0.0

    again = client.post(f"/appointments/{seed_appointment.id}/payment", json={"amount": 1, "method": "cash"})
    assert again.status_code == 400


# --- POST /appointments/{id}/send-payment-link ---
def test_send_payment_link(client, seed_appointment, mock_send_email):
    response = client.post(f"/appointments/{seed_appointment.id}/send-payment-link")
    assert response.status_code == 200

    data = response.json()
    assert data["paymentLink"].endswith(f"/pay/{seed_appointment.id}")
    assert data["amount"] == 85.0
    assert mock_send_email.await_args.kwargs["to"] == "jordan@example.com"


def test_send_payment_link_email_failure(client, seed_appointment, mock_send_email):
    from zentra.email_service import EmailDeliveryError

    mock_send_email.side_effect = EmailDeliveryError("boom")
    response = client.post(f"/appointments/{seed_appointment.id}/send-payment-link")
    assert response.status_code == 500


def test_send_payment_link_nothing_due(client, seed_appointment, db_session):
    seed_appointment.remaining_balance = 0.0
    seed_appointment.payment_status = "paid"
    db_session.commit()

    response = client.post(f"/appointments/{seed_appointment.id}/send-payment-link")
    assert response.status_code == 400


# --- POST /appointments/{id}/aftercare ---
def test_send_aftercare(client, seed_appointment, mock_send_email):
    response = client.post(
        f"/appointments/{seed_appointment.id}/aftercare",
        json={"templateName": "Colour care", "content": "Avoid washing for 48 hours."},
    )
    assert response.status_code == 200
    mock_send_email.assert_awaited_once()



def test_send_aftercare_from_saved_template(client, seed_appointment, seed_business, db_session, mock_send_email):
    template = AftercareTemplate(
        business_id=seed_business.id, name="Colour care", category="Hair", content="Use colour-safe shampoo."
    )
    db_session.add(template)
    db_session.commit()

    response = client.post(f"/appointments/{seed_appointment.id}/aftercare", json={"templateId": template.id})
    assert response.status_code == 200
    mock_send_email.assert_awaited_once()


def test_send_aftercare_needs_template_or_content(client, seed_appointment, mock_send_email):
    missing = client.post(f"/appointments/{seed_appointment.id}/aftercare", json={"templateId": 999})
    empty = client.post(f"/appointments/{seed_appointment.id}/aftercare", json={"templateName": "Colour care"})
    assert missing.status_code == 404
    assert empty.status_code == 400
    mock_send_email.assert_not_awaited()

# --- POST /public/{business_id}/bookings ---
def test_public_booking_creates_client_once(anonymous_client, seed_service, seed_business, db_session):
    booking = {
        "serviceId": seed_service.id,
        "date": TOMORROW,
        "startTime": "15:00",
        "clientName": "Casey Morgan",
        "clientEmail": "Casey@Example.com",
    }
    first = anonymous_client.post(f"/public/{seed_business.id}/bookings", json=booking)
    second = anonymous_client.post(f"/public/{seed_business.id}/bookings", json={**booking, "startTime": "17:00"})

    assert first.status_code == 201
    assert first.json()["status"] == "pending"
    assert first.json()["clientEmail"] == "casey@example.com"
    assert second.json()["clientId"] == first.json()["clientId"]
    assert db_session.query(Client).count() == 1


def test_public_booking_rejects_taken_staff_slot(anonymous_client, seed_service, seed_business, seed_staff, db_session):
    booking = {
        "serviceId": seed_service.id,
        "staffId": seed_staff.id,
        "date": TOMORROW,
        "startTime": "10:00",
        "clientName": "Casey Morgan",
        "clientEmail": "casey@example.com",
    }
    first = anonymous_client.post(f"/public/{seed_business.id}/bookings", json=booking)
    second = anonymous_client.post(
        f"/public/{seed_business.id}/bookings", json={**booking, "clientEmail": "sam@example.com"}
    )
    overlapping = anonymous_client.post(
        f"/public/{seed_business.id}/bookings", json={**booking, "startTime": "11:00"}
    )

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"] == "This time slot is no longer available"
    assert overlapping.status_code == 409
    assert db_session.query(Appointment).count() == 1


def test_public_booking_frees_cancelled_slot(client, seed_service, seed_business, seed_staff):
    booking = {
        "serviceId": seed_service.id,
        "staffId": seed_staff.id,
        "date": TOMORROW,
        "startTime": "10:00",
        "clientName": "Casey Morgan",
        "clientEmail": "casey@example.com",
    }
    first = client.post(f"/public/{seed_business.id}/bookings", json=booking).json()
    client.patch(f"/appointments/{first['id']}/status", json={"status": "cancelled"})

    assert client.post(f"/public/{seed_business.id}/bookings", json=booking).status_code == 201


def test_booking_buffer_between_appointments(client, seed_service, seed_business, seed_staff, db_session):
    seed_business.settings = {**seed_business.settings, "bookingBuffer": 15}
    db_session.commit()
    booking = {"serviceId": seed_service.id, "clientName": "Walk-in", "staffId": seed_staff.id, "date": TOMORROW}

    assert client.post("/appointments", json={**booking, "startTime": "10:00"}).status_code == 201
    # 10:00-11:30 plus 15 minutes
    assert client.post("/appointments", json={**booking, "startTime": "11:40"}).status_code == 409
    assert client.post("/appointments", json={**booking, "startTime": "11:45"}).status_code == 201
    # Ends at 09:50, inside the buffer before 10:00
    assert client.post("/appointments", json={**booking, "startTime": "09:00", "duration": 50}).status_code == 409


def test_booking_outside_staff_schedule(client, seed_service, seed_staff, db_session):
    seed_staff.schedule = {"monday": [{"start": "09:00", "end": "17:00"}]}
    db_session.commit()
    monday = date.today() + timedelta(days=7 - date.today().weekday())
    tuesday = monday + timedelta(days=1)
    booking = {"serviceId": seed_service.id, "clientName": "Walk-in", "staffId": seed_staff.id}

    late = client.post("/appointments", json={**booking, "date": monday.isoformat(), "startTime": "16:00"})
    day_off = client.post("/appointments", json={**booking, "date": tuesday.isoformat(), "startTime": "10:00"})
    fits = client.post("/appointments", json={**booking, "date": monday.isoformat(), "startTime": "15:30"})

    assert late.status_code == 400
    assert late.json()["detail"] == "Priya Shah is not working at this time"
    assert day_off.status_code == 400
    assert fits.status_code == 201


def test_booking_inside_blocked_time(client, seed_service, seed_business, seed_staff):
    client.post(
        "/blocked-times",
        json={"staffId": seed_staff.id, "startDate": TOMORROW, "startTime": "12:00", "endTime": "13:00", "reason": "Lunch"},
    )
    booking = {
        "serviceId": seed_service.id,
        "date": TOMORROW,
        "startTime": "11:00",
        "clientName": "Casey Morgan",
        "clientEmail": "casey@example.com",
    }

    with_staff = client.post(f"/public/{seed_business.id}/bookings", json={**booking, "staffId": seed_staff.id})
    assert with_staff.status_code == 409
    assert with_staff.json()["detail"] == "This time is blocked in the calendar"
    # The lunch block only covers Priya
    assert client.post(f"/public/{seed_business.id}/bookings", json=booking).status_code == 201

    client.post("/blocked-times", json={"startDate": TOMORROW, "reason": "Closed for training"})
    closed = client.post(f"/public/{seed_business.id}/bookings", json={**booking, "startTime": "16:00"})
    assert closed.status_code == 409


def test_public_booking_inactive_service(anonymous_client, seed_service, seed_business, db_session):
    seed_service.active = False
    db_session.commit()

    response = anonymous_client.post(
        f"/public/{seed_business.id}/bookings",
        json={
            "serviceId": seed_service.id,
            "date": TOMORROW,
            "startTime": "15:00",
            "clientName": "Casey Morgan",
            "clientEmail": "casey@example.com",
        },
    )
    assert response.status_code == 400


def test_public_booking_unknown_business(anonymous_client):
    response = anonymous_client.post(
        "/public/999/bookings",
        json={"serviceId": 1, "date": TOMORROW, "startTime": "15:00", "clientName": "A", "clientEmail": "a@b.co"},
    )
    assert response.status_code == 404


# --- GET /public/appointments/{id} ---
def test_public_appointment_for_payment_page(anonymous_client, seed_appointment, seed_business, db_session):
    seed_business.stripe_account_id = "acct_123"
    seed_appointment.amount_paid = 17.0
    seed_appointment.remaining_balance = 68.0
    db_session.commit()

    response = anonymous_client.get(f"/public/appointments/{seed_appointment.id}")
    assert response.status_code == 200

    data = response.json()
    assert data["businessName"] == "Glow Studio"
    assert data["amountDue"] == 68.0
    assert data["currency"] == "gbp"
    assert data["acceptsCardPayments"] is True


# --- GET /calendar/data and /payments/data ---
def test_calendar_payload(client, seed_appointment, seed_staff):
    data = client.get("/calendar/data").json()
    assert [a["id"] for a in data["appointments"]] == [seed_appointment.id]
    assert len(data["clients"]) == 1
    assert [s["name"] for s in data["staff"]] == ["Priya Shah"]
    assert [s["name"] for s in data["services"]] == ["Cut & Colour"]
    assert data["business"]["id"] == seed_appointment.business_id


def test_payments_payload(client, seed_appointment):
    data = client.get("/payments/data").json()
    assert data["appointments"][0]["payment"]["remainingBalance"] == 85.0
