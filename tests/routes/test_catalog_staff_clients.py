from zentra.models import ApiUsage, Appointment, Client, LoyaltyTransaction


# --- POST /services ---
def test_create_and_list_services(client, seed_business):
    response = client.post(
        "/services",
        json={"name": "Gel Manicure", "category": "Nails", "duration": 45, "price": 32.5, "depositRequired": False},
    )
    assert response.status_code == 201
    created = response.json()
    assert created["depositRequired"] is False
    assert created["active"] is True

    client.post("/services", json={"name": "Old Treatment", "duration": 30, "price": 10, "active": False})

    all_services = client.get("/services").json()
    active = client.get("/services", params={"active_only": True}).json()
    assert len(all_services) == 2
    assert [s["name"] for s in active] == ["Gel Manicure"]


def test_create_service_rejects_zero_duration(client, seed_business):
    response = client.post("/services", json={"name": "Nothing", "duration": 0, "price": 10})
    assert response.status_code == 422


# --- PATCH /services/{id} ---
def test_update_service(client, seed_service):
    response = client.patch(f"/services/{seed_service.id}", json={"price": 95, "active": False})
    assert response.status_code == 200
    assert response.json()["price"] == 95
    assert response.json()["active"] is False


def test_service_of_another_business_is_not_found(client, seed_business):
    response = client.get("/services/12345")
    assert response.status_code == 404


# --- POST /staff ---
def test_create_staff_member(client, seed_business):
    response = client.post(
        "/staff",
        json={
            "name": "Priya Shah",
            "email": "PRIYA@glowstudio.co.uk",
            "schedule": {"Monday": [{"start": "09:00", "end": "17:00"}]},
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "priya@glowstudio.co.uk"
    assert data["schedule"] == {"monday": [{"start": "09:00", "end": "17:00"}]}
    assert data["status"] == "active"
    assert data["joinDate"] is not None


def test_create_staff_rejects_inverted_slot(client, seed_business):
    response = client.post(
        "/staff", json={"name": "Alex", "schedule": {"tuesday": [{"start": "17:00", "end": "09:00"}]}}
    )
    assert response.status_code == 422


def test_staff_limit_on_trial(client, seed_staff):
    response = client.post("/staff", json={"name": "Second Stylist"})
    assert response.status_code == 403
    assert "plan limit of 1 staff" in response.json()["detail"]


def test_staff_limit_lifted_by_plan(client, seed_staff, db_session, seed_business):
    seed_business.subscription_plan = "professional"
    seed_business.subscription_status = "active"
    db_session.commit()

    response = client.post("/staff", json={"name": "Second Stylist"})
    assert response.status_code == 201


# --- PATCH /staff/{id} ---
def test_deactivate_staff_member(client, seed_staff):
    response = client.patch(f"/staff/{seed_staff.id}", json={"status": "inactive"})
    assert response.status_code == 200
    assert response.json()["status"] == "inactive"


# --- DELETE /staff/{id} ---
def test_delete_staff_member(client, seed_staff):
    assert client.delete(f"/staff/{seed_staff.id}").status_code == 200
    assert client.get(f"/staff/{seed_staff.id}").status_code == 404


# --- POST /clients ---
def test_create_client(client, seed_business):
    response = client.post(
        "/clients",
        json={"name": "Jordan Lee", "email": "Jordan@Example.com", "phone": "00447700900123", "birthday": "1990-05-17"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "jordan@example.com"
    assert data["phone"] == "+447700900123"
    assert data["loyaltyPoints"] == 0
    assert data["membershipLevel"] == "bronze"


def test_create_client_duplicate_email(client, seed_client):
    response = client.post("/clients", json={"name": "Someone Else", "email": "jordan@example.com"})
    assert response.status_code == 409


def test_create_client_rejects_phone_without_country_code(client, seed_business):
    response = client.post("/clients", json={"name": "Jordan", "phone": "07700900123"})
    assert response.status_code == 422


# --- GET /clients ---
def test_search_clients(client, seed_client, seed_business, db_session):
    db_session.add(Client(business_id=seed_business.id, name="Morgan Fox", email="morgan@example.com"))
    db_session.commit()

    names = [c["name"] for c in client.get("/clients", params={"search": "MORGAN"}).json()]
    assert names == ["Morgan Fox"]
    assert len(client.get("/clients").json()) == 2


def test_clients_page_payload(client, seed_client):
    response = client.get("/clients/data")
    assert response.status_code == 200
    data = response.json()
    assert [c["id"] for c in data["clients"]] == [seed_client.id]
    assert data["business"]["businessName"] == "Glow Studio"


# --- DELETE /clients/{id} ---
def test_delete_client_keeps_appointment_history(client, seed_appointment, seed_client, db_session):
    db_session.add(
        LoyaltyTransaction(
            business_id=seed_client.business_id, client_id=seed_client.id, type="earned", points=10, reason="Test"
        )
    )
    db_session.commit()

    response = client.delete(f"/clients/{seed_client.id}")
    assert response.status_code == 200

    db_session.expire_all()
    appointment = db_session.get(Appointment, seed_appointment.id)
    assert appointment.client_id is None
    assert appointment.client_name == "Jordan Lee"
    assert db_session.query(LoyaltyTransaction).count() == 0
    assert db_session.get(Client, seed_client.id) is None


# --- API usage tracking ---
def test_dashboard_calls_are_counted(client, seed_business, db_session):
    client.get("/clients")
    client.get("/clients")
    client.get("/services")

    usage = db_session.query(ApiUsage).filter(ApiUsage.business_id == seed_business.id).one()
    assert usage.total_calls == 3
    assert usage.calls_by_endpoint == {"GET:/clients": 2, "GET:/services": 1}

    stats = client.get("/usage/stats").json()
    assert stats["currentMonth"]["calls"] == 3
    assert stats["topEndpoints"][0] == {"endpoint": "GET:/clients", "calls": 2}
    assert stats["limit"] == 10000
    assert stats["percentageUsed"] == 0.0
