"""
Customer, technician and vendor directory endpoints.

    GET    /customers                  active only unless include_inactive, by company name
    POST   /customers                  manager only, company or person name required
    GET    /customers/{id}             same organization only
    PATCH  /customers/{id}             partial update, isActive=false deactivates
    GET    /technicians                manager only, technician role only
    POST   /technicians                owner/admin/manager, unique email, login code issued
    PUT    /technicians/{id}           full replacement, 404 unless a technician of the org
    GET    /vendors                    active vendors, alphabetical
    POST   /vendors                    manager only, returns {id, name}

Run: python -m pytest tests/test_directory_api.py -v
"""

import re

from fieldservice.models import Customer, User, Vendor


# ── Helpers ──────────────────────────────────────────────────────────────


def _customer(db, org, company_name, is_active=True):
    record = Customer(organization_id=org.id, company_name=company_name, is_active=is_active)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def _vendor(db, org, name, is_active=True):
    record = Vendor(organization_id=org.id, name=name, is_active=is_active)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def _technician_payload(**overrides):
    payload = {
        "fullName": "Nina New",
        "email": "Nina@Acme.test",
        "phone": "555-0100",
        "specialty": "Refrigeration",
    }
    payload.update(overrides)
    return payload


# ── Customers ────────────────────────────────────────────────────────────


class TestCustomerList:
    def test_active_customers_by_company_name(self, client, auth, db, org, other_org, technician, customer):
        _customer(db, org, "Zenith Labs")
        _customer(db, org, "Acme Widgets")
        _customer(db, org, "Beta Holdings", is_active=False)
        _customer(db, other_org, "Elsewhere Inc")

        res = client.get("/customers", headers=auth(technician))

        assert res.status_code == 200
        assert [item["companyName"] for item in res.json()] == ["Acme Widgets", "Globex Corp", "Zenith Labs"]

    def test_include_inactive(self, client, auth, db, org, manager, customer):
        _customer(db, org, "Beta Holdings", is_active=False)

        res = client.get("/customers", params={"include_inactive": True}, headers=auth(manager))

        assert [item["companyName"] for item in res.json()] == ["Beta Holdings", "Globex Corp"]

    def test_requires_auth(self, client):
        assert client.get("/customers").status_code in (401, 403)


class TestCustomerCreate:
    def test_create_commercial_customer(self, client, auth, db, org, manager):
        res = client.post(
            "/customers",
            json={"companyName": "Initech", "email": "ap@initech.test", "notes": "<script>x</script>"},
            headers=auth(manager),
        )

        assert res.status_code == 201, res.text
        body = res.json()
        assert body["displayName"] == "Initech"
        assert body["type"] == "commercial"
        assert body["customerType"] == "direct"
        assert body["isActive"] is True
        assert body["notes"] == "&lt;script&gt;x&lt;/script&gt;"
        assert db.get(Customer, body["id"]).organization_id == org.id

    def test_residential_customer_uses_person_name(self, client, auth, manager):
        res = client.post(
            "/customers",
            json={"type": "residential", "firstName": "Jane", "lastName": "Doe"},
            headers=auth(manager),
        )

        assert res.status_code == 201
        assert res.json()["displayName"] == "Jane Doe"

    def test_name_required(self, client, auth, manager):
        res = client.post("/customers", json={"email": "nobody@x.test", "companyName": "  "}, headers=auth(manager))

        assert res.status_code == 400

    def test_unknown_type_rejected(self, client, auth, manager):
        res = client.post("/customers", json={"companyName": "Initech", "type": "industrial"}, headers=auth(manager))

        assert res.status_code == 422

    def test_technician_cannot_create(self, client, auth, technician):
        assert client.post("/customers", json={"companyName": "Initech"}, headers=auth(technician)).status_code == 403


class TestCustomerUpdate:
    def test_deactivate_hides_from_list(self, client, auth, manager, customer):
        res = client.patch(f"/customers/{customer.id}", json={"isActive": False}, headers=auth(manager))

        assert res.status_code == 200
        assert res.json()["isActive"] is False
        assert client.get("/customers", headers=auth(manager)).json() == []

    def test_cannot_clear_the_only_name(self, client, auth, manager, customer):
        res = client.patch(f"/customers/{customer.id}", json={"companyName": None}, headers=auth(manager))

        assert res.status_code == 400

    def test_other_org_customer_not_found(self, client, auth, db, other_org, manager):
        foreign = _customer(db, other_org, "Elsewhere Inc")

        assert client.get(f"/customers/{foreign.id}", headers=auth(manager)).status_code == 404
        assert client.patch(f"/customers/{foreign.id}", json={"phone": "1"}, headers=auth(manager)).status_code == 404


# ── Technicians ──────────────────────────────────────────────────────────


class TestTechnicianList:
    def test_lists_only_technicians(self, client, auth, manager, technician, second_technician):
        res = client.get("/technicians", headers=auth(manager))

        assert res.status_code == 200
        assert [item["fullName"] for item in res.json()] == ["Tina Tech", "Tom Tech"]

    def test_active_only(self, client, auth, db, manager, technician, second_technician):
        second_technician.is_active = False
        db.commit()

        res = client.get("/technicians", params={"active_only": True}, headers=auth(manager))

        assert [item["id"] for item in res.json()] == [technician.id]

    def test_technician_cannot_list(self, client, auth, technician):
        assert client.get("/technicians", headers=auth(technician)).status_code == 403


class TestTechnicianCreate:
    def test_create_issues_login_code(self, client, auth, db, org, manager):
        res = client.post("/technicians", json=_technician_payload(), headers=auth(manager))

        assert res.status_code == 201, res.text
        body = res.json()
        assert body["email"] == "nina@acme.test"
        assert body["specialty"] == "Refrigeration"
        assert body["isActive"] is True
        assert re.fullmatch(r"[A-Z0-9]{6}", body["loginCode"])

        row = db.get(User, body["id"])
        assert row.role == "technician"
        assert row.organization_id == org.id

        login = client.post("/auth/login-code", json={"code": body["loginCode"].lower()})
        assert login.status_code == 200

    def test_name_and_email_required(self, client, auth, manager):
        res = client.post("/technicians", json=_technician_payload(fullName="  "), headers=auth(manager))

        assert res.status_code == 400
        assert res.json()["detail"] == "Full name and email are required"

    def test_duplicate_email_rejected(self, client, auth, manager, technician):
        res = client.post("/technicians", json=_technician_payload(email="TECH@acme.test"), headers=auth(manager))

        assert res.status_code == 400
        assert res.json()["detail"] == "A user with this email already exists"

    def test_dispatcher_cannot_create(self, client, auth, dispatcher):
        assert client.post("/technicians", json=_technician_payload(), headers=auth(dispatcher)).status_code == 403


class TestTechnicianUpdate:
    def test_full_replacement(self, client, auth, db, manager, technician):
        technician.phone = "555-0199"
        db.commit()

        res = client.put(
            f"/technicians/{technician.id}",
            json={"fullName": "Tina Technician", "email": "tech@acme.test", "isActive": False},
            headers=auth(manager),
        )

        assert res.status_code == 200, res.text
        body = res.json()
        assert body["fullName"] == "Tina Technician"
        assert body["phone"] is None
        assert body["isActive"] is False
        assert body["loginCode"] == "TECH01"

    def test_email_taken_by_someone_else(self, client, auth, manager, technician):
        res = client.put(
            f"/technicians/{technician.id}",
            json={"fullName": "Tina Tech", "email": "manager@acme.test"},
            headers=auth(manager),
        )

        assert res.status_code == 400

    def test_non_technicians_not_found(self, client, auth, db, other_org, manager, dispatcher):
        foreign = User(organization_id=other_org.id, email="far@other.test", full_name="Far Tech", role="technician")
        db.add(foreign)
        db.commit()
        payload = {"fullName": "X", "email": "x@acme.test"}

        assert client.put(f"/technicians/{dispatcher.id}", json=payload, headers=auth(manager)).status_code == 404
        assert client.put(f"/technicians/{foreign.id}", json=payload, headers=auth(manager)).status_code == 404


# ── Vendors ──────────────────────────────────────────────────────────────


class TestVendors:
    def test_create_vendor(self, client, auth, db, org, manager):
        res = client.post("/vendors", json={"name": "  Carrier Supply "}, headers=auth(manager))

        assert res.status_code == 201
        body = res.json()
        assert body == {"id": body["id"], "name": "Carrier Supply"}
        vendor = db.get(Vendor, body["id"])
        assert vendor.organization_id == org.id
        assert vendor.is_active is True

    def test_blank_name(self, client, auth, manager):
        assert client.post("/vendors", json={"name": "   "}, headers=auth(manager)).status_code == 400
        assert client.post("/vendors", json={"name": ""}, headers=auth(manager)).status_code == 422

    def test_technician_cannot_create(self, client, auth, technician):
        assert client.post("/vendors", json={"name": "Carrier"}, headers=auth(technician)).status_code == 403

    def test_list_active_alphabetical(self, client, auth, db, org, other_org, technician):
        _vendor(db, org, "Trane Parts")
        _vendor(db, org, "Carrier Supply")
        _vendor(db, org, "Old Vendor", is_active=False)
        _vendor(db, other_org, "Elsewhere")

        res = client.get("/vendors", headers=auth(technician))

        assert [item["name"] for item in res.json()] == ["Carrier Supply", "Trane Parts"]

    def test_new_vendor_usable_on_contract(self, client, auth, manager, customer):
        vendor_id = client.post("/vendors", json={"name": "Carrier Supply"}, headers=auth(manager)).json()["id"]

        res = client.post(
            "/contracts",
            json={"customerId": customer.id, "vendorId": vendor_id, "startDate": "2024-01-01", "endDate": "2024-12-31"},
            headers=auth(manager),
        )

        assert res.status_code == 201, res.text
        assert res.json()["vendorName"] == "Carrier Supply"
