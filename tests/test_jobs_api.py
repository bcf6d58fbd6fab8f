"""
Job endpoints: creation, listing (with the overdue sweep), edits and their
notifications, technician responses and report metadata.

Notification recipients:
    job_created     managers ("assigned to ...") + assigned technicians
    job_updated     managers + technicians, minus the editor
    job_completed   assigned technicians
    job_accepted /
    job_declined    managers
    report_*        managers + technicians, minus the uploader
    job_overdue     managers + technicians

Run: python -m pytest tests/test_jobs_api.py -v
"""

import re
from datetime import datetime, timedelta

from fieldservice.models import Equipment
from fieldservice.models_job import Job, JobAttachment, JobTechnician
from fieldservice.models_notification import Notification


# ── Helpers ──────────────────────────────────────────────────────────────


def _notified(db, notification_type):
    rows = db.query(Notification).filter(Notification.type == notification_type).all()
    return sorted(row.recipient_user_id for row in rows)


def _messages(db, notification_type):
    rows = db.query(Notification).filter(Notification.type == notification_type).all()
    return {row.recipient_user_id: row.message for row in rows}


def _equipment(db, customer, name="RTU-1"):
    equipment = Equipment(organization_id=customer.organization_id, customer_id=customer.id, name=name)
    db.add(equipment)
    db.commit()
    return equipment


# ── Create ───────────────────────────────────────────────────────────────


class TestCreateJob:
    def test_create_job_with_assignments(self, client, auth, db, manager, technician, customer):
        equipment = _equipment(db, customer)
        payload = {
            "customerId": customer.id,
            "title": "Spring PM",
            "scheduledStart": "2030-04-01T08:00:00",
            "technicians": [{"technicianId": technician.id, "isLead": True}],
            "units": [{"equipmentId": equipment.id, "expectedReports": 2}],
            "contacts": [{"name": "Front desk", "phone": "555-0100"}],
        }

        res = client.post("/jobs", json=payload, headers=auth(manager))

        assert res.status_code == 201, res.text
        body = res.json()
        assert re.fullmatch(r"JOB-\d{8}-[0-9A-Z]{4}", body["jobNumber"])
        assert body["status"] == "pending"
        assert body["completedAt"] is None
        assert body["technicians"][0]["isLead"] is True
        assert body["units"][0]["expectedReports"] == 2
        assert body["units"][0]["uploadedReports"] == 0

        messages = _messages(db, "job_created")
        assert messages[manager.id] == "Job Spring PM confirmed, assigned to Tina Tech"
        assert messages[technician.id] == "Job Spring PM confirmed and assigned to you"

    def test_without_technicians(self, client, auth, db, manager, customer):
        res = client.post("/jobs", json={"customerId": customer.id, "title": "Call-out"}, headers=auth(manager))

        assert res.status_code == 201
        assert _messages(db, "job_created") == {manager.id: "Job Call-out confirmed, assigned to no technicians"}

    def test_created_completed_gets_timestamp(self, client, auth, manager, customer):
        payload = {"customerId": customer.id, "status": "completed"}

        res = client.post("/jobs", json=payload, headers=auth(manager))

        assert res.json()["completedAt"] is not None

    def test_at_most_one_lead(self, client, auth, manager, technician, second_technician, customer):
        payload = {
            "customerId": customer.id,
            "technicians": [
                {"technicianId": technician.id, "isLead": True},
                {"technicianId": second_technician.id, "isLead": True},
            ],
        }

        res = client.post("/jobs", json=payload, headers=auth(manager))

        assert res.status_code == 400
        assert "lead" in res.json()["detail"]

    def test_duplicate_technician(self, client, auth, manager, technician, customer):
        payload = {
            "customerId": customer.id,
            "technicians": [{"technicianId": technician.id}, {"technicianId": technician.id}],
        }

        assert client.post("/jobs", json=payload, headers=auth(manager)).status_code == 400

    def test_invalid_status(self, client, auth, manager, customer):
        payload = {"customerId": customer.id, "status": "someday"}

        assert client.post("/jobs", json=payload, headers=auth(manager)).status_code == 400

    def test_unknown_equipment(self, client, auth, manager, customer):
        payload = {"customerId": customer.id, "units": [{"equipmentId": 999}]}

        assert client.post("/jobs", json=payload, headers=auth(manager)).status_code == 404


# ── List ─────────────────────────────────────────────────────────────────


class TestListJobs:
    def test_listing_marks_forgotten_jobs_overdue(self, client, auth, db, manager, technician, make_job):
        stale = make_job(
            scheduled_start=datetime.utcnow() - timedelta(days=3),
            technicians=[technician],
            job_number="JOB-OLD",
        )
        fresh = make_job(scheduled_start=datetime.utcnow() - timedelta(days=1), job_number="JOB-NEW")

        res = client.get("/jobs", headers=auth(manager))

        assert res.status_code == 200
        statuses = {job["id"]: job["status"] for job in res.json()}
        assert statuses == {stale.id: "overdue", fresh.id: "pending"}
        assert _notified(db, "job_overdue") == sorted([manager.id, technician.id])

    def test_response_counts(self, client, auth, db, manager, technician, second_technician, make_job):
        job = make_job(technicians=[technician, second_technician])
        db.query(JobTechnician).filter(JobTechnician.technician_id == technician.id).update(
            {"status": "accepted"}
        )
        db.commit()

        item = client.get("/jobs", headers=auth(manager)).json()[0]

        assert item["id"] == job.id
        assert item["technicianCount"] == 2
        assert item["acceptedCount"] == 1
        assert item["pendingCount"] == 1

    def test_technician_cannot_list_all(self, client, auth, technician):
        assert client.get("/jobs", headers=auth(technician)).status_code == 403


class TestCheckOverdueEndpoint:
    def test_check_overdue(self, client, make_job):
        make_job(scheduled_start=datetime.utcnow() - timedelta(days=5), job_number="JOB-1")
        make_job(status="completed", scheduled_start=datetime.utcnow() - timedelta(days=5), job_number="JOB-2")

        res = client.get("/api/jobs/check-overdue")

        assert res.status_code == 200
        assert res.json() == {"success": True, "checked": 1, "updated": 1}


# ── Update ───────────────────────────────────────────────────────────────


class TestUpdateJob:
    def test_change_summary_skips_editor(self, client, auth, db, manager, dispatcher, technician, make_job):
        job = make_job(title="Quarterly PM", technicians=[technician], po_number="PO-1")

        res = client.patch(f"/jobs/{job.id}", json={"poNumber": "PO-2"}, headers=auth(manager))

        assert res.status_code == 200
        assert _notified(db, "job_updated") == sorted([dispatcher.id, technician.id])
        message = _messages(db, "job_updated")[technician.id]
        assert message == 'Job "Quarterly PM" was updated. Changes: PO number: PO-1 → PO-2'

    def test_no_changes_no_notification(self, client, auth, db, manager, make_job):
        job = make_job(title="Quarterly PM")

        client.patch(f"/jobs/{job.id}", json={"title": "Quarterly PM"}, headers=auth(manager))

        assert _notified(db, "job_updated") == []

    def test_completed_at_follows_status(self, client, auth, db, manager, technician, make_job):
        job = make_job(status="confirmed", technicians=[technician])

        done = client.patch(f"/jobs/{job.id}", json={"status": "completed"}, headers=auth(manager)).json()
        assert done["completedAt"] is not None
        assert _notified(db, "job_completed") == [technician.id]

        reopened = client.patch(f"/jobs/{job.id}", json={"status": "confirmed"}, headers=auth(manager)).json()
        assert reopened["completedAt"] is None

    def test_technician_set_is_synced(self, client, auth, db, manager, technician, second_technician, make_job):
        job = make_job(technicians=[technician])
        db.query(JobTechnician).update({"status": "accepted"})
        db.commit()
        payload = {
            "technicians": [
                {"technicianId": technician.id, "isLead": True},
                {"technicianId": second_technician.id},
            ]
        }

        res = client.patch(f"/jobs/{job.id}", json=payload, headers=auth(manager))

        techs = {t["technicianId"]: t for t in res.json()["technicians"]}
        assert techs[technician.id]["status"] == "accepted"
        assert techs[technician.id]["isLead"] is True
        assert techs[second_technician.id]["status"] == "pending"

    def test_return_trip_decision(self, client, auth, manager, make_job):
        job = make_job()

        res = client.put(
            f"/jobs/{job.id}/return-trip",
            json={"needed": True, "reason": "Compressor on backorder"},
            headers=auth(manager),
        )

        assert res.json()["returnTripNeeded"] is True
        assert res.json()["returnTripReason"] == "Compressor on backorder"

    def test_delete_job(self, client, auth, db, manager, technician, make_job):
        job = make_job(technicians=[technician])

        res = client.delete(f"/jobs/{job.id}", headers=auth(manager))

        assert res.status_code == 200
        db.expire_all()
        assert db.get(Job, job.id) is None
        assert db.query(JobTechnician).count() == 0

    def test_job_in_other_org_not_found(self, client, auth, manager, other_org, make_job):
        job = make_job(organization_id=other_org.id)

        assert client.get(f"/jobs/{job.id}", headers=auth(manager)).status_code == 404


# ── Technician responses ─────────────────────────────────────────────────


class TestTechnicianResponses:
    def test_accept_confirms_pending_job(self, client, auth, db, manager, technician, make_job):
        job = make_job(status="pending", technicians=[technician])

        res = client.post(f"/technician/jobs/{job.id}/accept", headers=auth(technician))

        assert res.status_code == 200
        assert res.json()["status"] == "accepted"
        db.expire_all()
        assert db.get(Job, job.id).status == "confirmed"
        assert _messages(db, "job_accepted") == {manager.id: "Tina Tech accepted job Quarterly PM"}

    def test_decline_with_reason(self, client, auth, db, manager, technician, make_job):
        job = make_job(status="pending", technicians=[technician])

        res = client.post(
            f"/technician/jobs/{job.id}/decline", json={"reason": "On leave"}, headers=auth(technician)
        )

        assert res.json()["status"] == "declined"
        db.expire_all()
        assert db.get(Job, job.id).status == "pending"
        assert _messages(db, "job_declined")[manager.id] == "Tina Tech declined job Quarterly PM: On leave"

    def test_unassigned_technician(self, client, auth, second_technician, technician, make_job):
        job = make_job(technicians=[technician])

        res = client.post(f"/technician/jobs/{job.id}/accept", headers=auth(second_technician))

        assert res.status_code == 404

    def test_my_jobs(self, client, auth, technician, make_job):
        mine = make_job(technicians=[technician], job_number="JOB-MINE")
        make_job(job_number="JOB-OTHER")

        res = client.get("/technician/jobs", headers=auth(technician))

        assert [job["id"] for job in res.json()] == [mine.id]
        assert res.json()[0]["assignmentStatus"] == "pending"


# ── Reports ──────────────────────────────────────────────────────────────


class TestReports:
    def test_upload_notifies_everyone_but_uploader(
        self, client, auth, db, manager, technician, second_technician, make_job
    ):
        job = make_job(technicians=[technician, second_technician])
        payload = {"fileUrl": "https://files.test/r1.jpg", "fileName": "r1.jpg", "mimeType": "image/jpeg"}

        res = client.post(f"/jobs/{job.id}/reports", json=payload, headers=auth(technician))

        assert res.status_code == 201, res.text
        assert res.json()["type"] == "photo"
        assert res.json()["uploadedBy"] == technician.id
        assert _notified(db, "report_uploaded") == sorted([manager.id, second_technician.id])

    def test_pdf_is_document(self, client, auth, manager, make_job):
        job = make_job()
        payload = {"fileUrl": "https://files.test/r1.pdf", "mimeType": "application/pdf"}

        res = client.post(f"/jobs/{job.id}/reports", json=payload, headers=auth(manager))

        assert res.json()["type"] == "document"

    def test_unit_must_belong_to_job(self, client, auth, db, manager, customer, make_job):
        job = make_job()
        equipment = _equipment(db, customer)
        payload = {"fileUrl": "https://files.test/r1.pdf", "equipmentId": equipment.id}

        assert client.post(f"/jobs/{job.id}/reports", json=payload, headers=auth(manager)).status_code == 400

    def test_technician_cannot_delete_others_report(
        self, client, auth, db, manager, technician, make_job
    ):
        job = make_job(technicians=[technician])
        report = JobAttachment(job_id=job.id, file_url="https://files.test/x.pdf", uploaded_by=manager.id)
        db.add(report)
        db.commit()

        res = client.delete(f"/jobs/{job.id}/reports/{report.id}", headers=auth(technician))

        assert res.status_code == 403

    def test_manager_deletes_any_report(self, client, auth, db, manager, technician, make_job):
        job = make_job(technicians=[technician])
        report = JobAttachment(job_id=job.id, file_url="https://files.test/x.pdf", uploaded_by=technician.id)
        db.add(report)
        db.commit()

        res = client.delete(f"/jobs/{job.id}/reports/{report.id}", headers=auth(manager))

        assert res.status_code == 200
        assert _notified(db, "report_deleted") == [technician.id]
