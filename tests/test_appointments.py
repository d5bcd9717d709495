from hospital.models.appointment import Appointment

BASE = "/api/v1/appointments"

def book(client, headers, doctor_id="DR001", date="2025-01-10", time="09:00 AM", reason="Checkup"):
    return client.post(BASE, json={
        "doctorId": doctor_id,
        "date": date,
        "time": time,
        "reason": reason
    }, headers=headers)

def set_status(client, headers, appointment_id, status, notes=None):
    body = {"status": status}
    if notes is not None:
        body["notes"] = notes
    return client.patch(f"{BASE}/{appointment_id}/status", json=body, headers=headers)

class TestAppointmentBooking:

    def test_create_appointment(self, client, directory):
        patient = directory.patient(full_name="Pat Patient")
        directory.doctor(code="DR001", full_name="Dana Doctor")

        response = book(client, directory.headers(patient))
        assert response.status_code == 201

        body = response.json()
        assert body["status"] == "success"
        appointment = body["data"]["appointment"]
        assert appointment["appointmentId"] == "APT0001"
        assert appointment["status"] == "Pending"
        assert appointment["date"] == "2025-01-10"
        assert appointment["time"] == "09:00 AM"
        assert appointment["reason"] == "Checkup"
        assert appointment["patient"]["patientId"] == "PAT001"
        assert appointment["patient"]["fullName"] == "Pat Patient"
        assert appointment["doctor"]["doctorId"] == "DR001"
        assert appointment["doctor"]["name"] == "Dana Doctor"

    def test_sequential_ids(self, client, directory):
        headers = directory.headers(directory.patient())
        directory.doctor()

        codes = [
            book(client, headers, time=f"0{hour}:00 AM").json()["data"]["appointment"]["appointmentId"]
            for hour in range(1, 5)
        ]
        assert codes == ["APT0001", "APT0002", "APT0003", "APT0004"]

    def test_reason_is_optional(self, client, directory):
        headers = directory.headers(directory.patient())
        directory.doctor()

        response = client.post(BASE, json={
            "doctorId": "DR001", "date": "2025-01-10", "time": "10:00 AM"
        }, headers=headers)
        assert response.status_code == 201
        assert response.json()["data"]["appointment"]["reason"] == ""

    def test_unknown_doctor(self, client, directory):
        headers = directory.headers(directory.patient())

        response = book(client, headers, doctor_id="DR999")
        assert response.status_code == 404
        assert response.json()["message"] == "Doctor not found"

    def test_missing_fields(self, client, directory):
        headers = directory.headers(directory.patient())
        directory.doctor()

        response = client.post(BASE, json={"doctorId": "DR001"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["status"] == "error"

    def test_doctor_cannot_book(self, client, directory):
        doctor = directory.doctor()

        response = book(client, directory.headers(doctor))
        assert response.status_code == 403

class TestAppointmentLifecycle:

    def test_book_approve_complete(self, client, directory):
        patient = directory.patient()
        doctor = directory.doctor(code="DR001")
        admin = directory.admin()

        created = book(client, directory.headers(patient)).json()["data"]["appointment"]
        assert created["appointmentId"] == "APT0001"
        assert created["status"] == "Pending"

        response = set_status(client, directory.headers(admin), created["id"], "Approved", "See you soon")
        assert response.status_code == 200
        approved = response.json()["data"]["appointment"]
        assert approved["status"] == "Approved"
        assert approved["notes"] == "See you soon"

        response = client.patch(f"{BASE}/{created['id']}/complete", headers=directory.headers(doctor))
        assert response.status_code == 200
        assert response.json()["data"]["appointment"]["status"] == "Completed"

        # No longer Approved, so a second completion finds nothing
        response = client.patch(f"{BASE}/{created['id']}/complete", headers=directory.headers(doctor))
        assert response.status_code == 404

    def test_admin_rejects(self, client, directory):
        patient = directory.patient()
        directory.doctor()
        admin = directory.admin()

        created = book(client, directory.headers(patient)).json()["data"]["appointment"]
        response = set_status(client, directory.headers(admin), created["id"], "Rejected")

        assert response.status_code == 200
        appointment = response.json()["data"]["appointment"]
        assert appointment["status"] == "Rejected"
        assert appointment["notes"] == ""

    def test_status_update_unknown_appointment(self, client, directory):
        admin = directory.admin()

        response = set_status(client, directory.headers(admin), 999, "Approved")
        assert response.status_code == 404

    def test_status_update_invalid_status(self, client, directory):
        patient = directory.patient()
        directory.doctor()
        admin = directory.admin()
        created = book(client, directory.headers(patient)).json()["data"]["appointment"]

        response = set_status(client, directory.headers(admin), created["id"], "Done")
        assert response.status_code == 400

    def test_only_admin_updates_status(self, client, directory):
        patient = directory.patient()
        doctor = directory.doctor()
        created = book(client, directory.headers(patient)).json()["data"]["appointment"]

        assert set_status(client, directory.headers(patient), created["id"], "Approved").status_code == 403
        assert set_status(client, directory.headers(doctor), created["id"], "Approved").status_code == 403

    def test_doctor_cannot_complete_pending(self, client, directory):
        patient = directory.patient()
        doctor = directory.doctor()
        created = book(client, directory.headers(patient)).json()["data"]["appointment"]

        response = client.patch(f"{BASE}/{created['id']}/complete", headers=directory.headers(doctor))
        assert response.status_code == 404

    def test_doctor_cannot_complete_foreign_appointment(self, client, directory, db):
        patient = directory.patient()
        directory.doctor(code="DR001")
        other = directory.doctor(code="DR002", full_name="Other Doctor")
        admin = directory.admin()

        created = book(client, directory.headers(patient)).json()["data"]["appointment"]
        set_status(client, directory.headers(admin), created["id"], "Approved")

        response = client.patch(f"{BASE}/{created['id']}/complete", headers=directory.headers(other))
        assert response.status_code == 404

        db.expire_all()
        assert db.get(Appointment, created["id"]).status.value == "Approved"

class TestAppointmentVisibility:

    def test_doctor_sees_only_approved_and_completed(self, client, directory):
        patient = directory.patient()
        doctor = directory.doctor()
        admin = directory.admin()
        patient_headers = directory.headers(patient)
        admin_headers = directory.headers(admin)

        later = book(client, patient_headers, date="2025-01-12", time="09:00 AM").json()["data"]["appointment"]
        earlier = book(client, patient_headers, date="2025-01-11", time="11:00 AM").json()["data"]["appointment"]
        rejected = book(client, patient_headers, date="2025-01-10").json()["data"]["appointment"]
        book(client, patient_headers, date="2025-01-09")

        set_status(client, admin_headers, later["id"], "Approved")
        set_status(client, admin_headers, earlier["id"], "Approved")
        set_status(client, admin_headers, rejected["id"], "Rejected")
        client.patch(f"{BASE}/{earlier['id']}/complete", headers=directory.headers(doctor))

        response = client.get(f"{BASE}/doctor", headers=directory.headers(doctor))
        assert response.status_code == 200

        appointments = response.json()["data"]["appointments"]
        assert [a["id"] for a in appointments] == [earlier["id"], later["id"]]
        assert [a["status"] for a in appointments] == ["Completed", "Approved"]

    def test_same_day_slots_sort_as_text(self, client, directory):
        patient = directory.patient()
        doctor = directory.doctor()
        admin_headers = directory.headers(directory.admin())

        morning = book(client, directory.headers(patient), time="09:00 AM").json()["data"]["appointment"]
        afternoon = book(client, directory.headers(patient), time="02:00 PM").json()["data"]["appointment"]
        set_status(client, admin_headers, morning["id"], "Approved")
        set_status(client, admin_headers, afternoon["id"], "Approved")

        appointments = client.get(f"{BASE}/doctor", headers=directory.headers(doctor)).json()["data"]["appointments"]
        # Slot labels are not parsed as clock times
        assert [a["time"] for a in appointments] == ["02:00 PM", "09:00 AM"]

    def test_patient_sees_own_newest_first(self, client, directory):
        patient = directory.patient(code="PAT001", full_name="First Patient")
        other = directory.patient(code="PAT002", full_name="Second Patient")
        directory.doctor()

        first = book(client, directory.headers(patient)).json()["data"]["appointment"]
        second = book(client, directory.headers(patient), time="10:00 AM").json()["data"]["appointment"]
        book(client, directory.headers(other))

        response = client.get(f"{BASE}/patient", headers=directory.headers(patient))
        assert response.status_code == 200

        appointments = response.json()["data"]["appointments"]
        assert [a["id"] for a in appointments] == [second["id"], first["id"]]
        assert appointments[0]["doctor"]["name"] == "Dana Doctor"

    def test_admin_filters_by_status(self, client, directory):
        patient = directory.patient()
        directory.doctor()
        admin_headers = directory.headers(directory.admin())

        first = book(client, directory.headers(patient)).json()["data"]["appointment"]
        book(client, directory.headers(patient), time="10:00 AM")
        set_status(client, admin_headers, first["id"], "Approved")

        everything = client.get(f"{BASE}/admin", headers=admin_headers).json()["data"]["appointments"]
        assert len(everything) == 2

        approved = client.get(f"{BASE}/admin", params={"status": "Approved"}, headers=admin_headers)
        assert [a["id"] for a in approved.json()["data"]["appointments"]] == [first["id"]]

        all_statuses = client.get(f"{BASE}/admin", params={"status": "all"}, headers=admin_headers)
        assert len(all_statuses.json()["data"]["appointments"]) == 2

    def test_admin_invalid_status_filter(self, client, directory):
        admin_headers = directory.headers(directory.admin())

        response = client.get(f"{BASE}/admin", params={"status": "Unknown"}, headers=admin_headers)
        assert response.status_code == 400

    def test_admin_list_requires_admin(self, client, directory):
        response = client.get(f"{BASE}/admin", headers=directory.headers(directory.patient()))
        assert response.status_code == 403

class TestAppointmentCancellation:

    def test_patient_cancels_pending(self, client, directory, db):
        patient = directory.patient()
        directory.doctor()
        created = book(client, directory.headers(patient)).json()["data"]["appointment"]

        response = client.delete(f"{BASE}/{created['id']}", headers=directory.headers(patient))
        assert response.status_code == 200
        assert response.json() == {
            "status": "success",
            "message": "Appointment cancelled successfully"
        }

        db.expire_all()
        assert db.get(Appointment, created["id"]) is None

    def test_patient_cannot_cancel_approved(self, client, directory):
        patient = directory.patient()
        directory.doctor()
        admin = directory.admin()
        created = book(client, directory.headers(patient)).json()["data"]["appointment"]
        set_status(client, directory.headers(admin), created["id"], "Approved")

        response = client.delete(f"{BASE}/{created['id']}", headers=directory.headers(patient))
        assert response.status_code == 404

    def test_patient_cannot_cancel_others(self, client, directory):
        owner = directory.patient(code="PAT001", full_name="Owner Patient")
        intruder = directory.patient(code="PAT002", full_name="Intruder Patient")
        directory.doctor()
        created = book(client, directory.headers(owner)).json()["data"]["appointment"]

        response = client.delete(f"{BASE}/{created['id']}", headers=directory.headers(intruder))
        assert response.status_code == 404

    def test_admin_cancels_any_status(self, client, directory, db):
        patient = directory.patient()
        directory.doctor()
        admin_headers = directory.headers(directory.admin())
        created = book(client, directory.headers(patient)).json()["data"]["appointment"]
        set_status(client, admin_headers, created["id"], "Approved")

        response = client.delete(f"{BASE}/{created['id']}", headers=admin_headers)
        assert response.status_code == 200

        db.expire_all()
        assert db.get(Appointment, created["id"]) is None

    def test_admin_cancel_unknown(self, client, directory):
        response = client.delete(f"{BASE}/999", headers=directory.headers(directory.admin()))
        assert response.status_code == 404

    def test_doctor_cannot_cancel(self, client, directory):
        patient = directory.patient()
        doctor = directory.doctor()
        created = book(client, directory.headers(patient)).json()["data"]["appointment"]

        response = client.delete(f"{BASE}/{created['id']}", headers=directory.headers(doctor))
        assert response.status_code == 403
