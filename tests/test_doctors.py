from tests.conftest import auth, register

def create_specialization(doctor_client, admin, name: str) -> dict:
    response = doctor_client.post(
        "/api/specializations",
        json={"name": name, "description": f"{name} care"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 201, response.text
    return response.json()

class TestSpecializations:
    """Test the specialization catalogue."""

    def test_create_requires_admin(self, doctor_client, patient):
        response = doctor_client.post(
            "/api/specializations",
            json={"name": "Cardiology"},
            headers=auth(patient["token"]),
        )

        assert response.status_code == 403

    def test_create_and_list_sorted(self, doctor_client, admin):
        create_specialization(doctor_client, admin, "Neurology")
        create_specialization(doctor_client, admin, "Cardiology")

        response = doctor_client.get("/api/specializations")

        assert response.status_code == 200
        assert [s["name"] for s in response.json()] == ["Cardiology", "Neurology"]

    def test_duplicate_name(self, doctor_client, admin):
        create_specialization(doctor_client, admin, "Cardiology")
        response = doctor_client.post(
            "/api/specializations",
            json={"name": "Cardiology"},
            headers=auth(admin["token"]),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Specialization already exists"

    def test_update_and_delete(self, doctor_client, admin):
        specialization = create_specialization(doctor_client, admin, "Derm")

        updated = doctor_client.put(
            f"/api/specializations/{specialization['id']}",
            json={"name": "Dermatology"},
            headers=auth(admin["token"]),
        )
        assert updated.status_code == 200
        assert updated.json()["name"] == "Dermatology"
        assert updated.json()["description"] == "Derm care"

        deleted = doctor_client.delete(
            f"/api/specializations/{specialization['id']}",
            headers=auth(admin["token"]),
        )
        assert deleted.status_code == 200
        assert doctor_client.get(f"/api/specializations/{specialization['id']}").status_code == 404

    def test_clear_description(self, doctor_client, admin):
        """Test a description can be emptied without touching the name."""
        specialization = create_specialization(doctor_client, admin, "Cardiology")

        response = doctor_client.put(
            f"/api/specializations/{specialization['id']}",
            json={"description": ""},
            headers=auth(admin["token"]),
        )

        assert response.status_code == 200
        assert response.json()["description"] == ""
        assert response.json()["name"] == "Cardiology"

class TestDoctorProfiles:
    """Test doctor profile management."""

    def test_create_profile(self, doctor_profile, doctor_user):
        assert doctor_profile["userId"] == doctor_user["user"]["id"]
        assert doctor_profile["consultationFee"] == 50
        assert doctor_profile["qualifications"][0]["degree"] == "MD"
        assert [slot["day"] for slot in doctor_profile["availableSlots"]] == ["Monday", "Friday"]
        assert doctor_profile["availableSlots"][1]["isAvailable"] is False

    def test_patient_cannot_create_profile(self, doctor_client, patient):
        response = doctor_client.post(
            "/api/doctors",
            json={"userId": patient["user"]["id"]},
            headers=auth(patient["token"]),
        )

        assert response.status_code == 403

    def test_doctor_cannot_create_profile_for_someone_else(self, doctor_client, user_client, doctor_user):
        colleague = register(user_client, "Cole League", "cole@example.com", role="doctor")
        response = doctor_client.post(
            "/api/doctors",
            json={"userId": colleague["user"]["id"]},
            headers=auth(doctor_user["token"]),
        )

        assert response.status_code == 403

    def test_one_profile_per_user(self, doctor_client, doctor_profile, doctor_user):
        response = doctor_client.post(
            "/api/doctors",
            json={"userId": doctor_user["user"]["id"]},
            headers=auth(doctor_user["token"]),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Doctor profile already exists"

    def test_invalid_slot_rejected(self, doctor_client, doctor_user):
        response = doctor_client.post(
            "/api/doctors",
            json={
                "userId": doctor_user["user"]["id"],
                "availableSlots": [{"day": "Monday", "startTime": "11:00", "endTime": "09:00"}],
            },
            headers=auth(doctor_user["token"]),
        )

        assert response.status_code == 400

    def test_unknown_specialization_rejected(self, doctor_client, doctor_user):
        response = doctor_client.post(
            "/api/doctors",
            json={"userId": doctor_user["user"]["id"], "specializations": ["missing"]},
            headers=auth(doctor_user["token"]),
        )

        assert response.status_code == 400
        assert "missing" in response.json()["detail"]

    def test_lookup_by_id_and_user(self, doctor_client, doctor_profile, doctor_user):
        by_id = doctor_client.get(f"/api/doctors/{doctor_profile['id']}")
        by_user = doctor_client.get(f"/api/doctors/user/{doctor_user['user']['id']}")

        assert by_id.status_code == 200
        assert by_user.status_code == 200
        assert by_user.json()["id"] == doctor_profile["id"]
        assert doctor_client.get("/api/doctors/user/nobody").status_code == 404

    def test_filter_by_specialization(self, doctor_client, user_client, admin, doctor_user):
        cardiology = create_specialization(doctor_client, admin, "Cardiology")
        colleague = register(user_client, "Cole League", "cole@example.com", role="doctor")

        doctor_client.post(
            "/api/doctors",
            json={"userId": doctor_user["user"]["id"], "specializations": [cardiology["id"]]},
            headers=auth(doctor_user["token"]),
        )
        doctor_client.post(
            "/api/doctors",
            json={"userId": colleague["user"]["id"]},
            headers=auth(colleague["token"]),
        )

        everyone = doctor_client.get("/api/doctors")
        cardiologists = doctor_client.get(f"/api/doctors?specialization={cardiology['id']}")

        assert len(everyone.json()) == 2
        assert [d["userId"] for d in cardiologists.json()] == [doctor_user["user"]["id"]]
        assert cardiologists.json()[0]["specializations"][0]["name"] == "Cardiology"

    def test_owner_updates_profile(self, doctor_client, doctor_profile, doctor_user):
        response = doctor_client.put(
            f"/api/doctors/{doctor_profile['id']}",
            json={"bio": "Family medicine", "experience": 9},
            headers=auth(doctor_user["token"]),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["bio"] == "Family medicine"
        assert data["experience"] == 9
        assert len(data["availableSlots"]) == 2

    def test_other_user_cannot_update_profile(self, doctor_client, doctor_profile, patient):
        response = doctor_client.put(
            f"/api/doctors/{doctor_profile['id']}",
            json={"bio": "Hacked"},
            headers=auth(patient["token"]),
        )

        assert response.status_code == 403

    def test_replace_slots(self, doctor_client, doctor_profile, admin):
        """Test an admin can replace a doctor's weekly template."""
        response = doctor_client.put(
            f"/api/doctors/{doctor_profile['id']}/slots",
            json={"availableSlots": [{"day": "Tuesday", "startTime": "14:00", "endTime": "16:00"}]},
            headers=auth(admin["token"]),
        )

        assert response.status_code == 200
        slots = response.json()["availableSlots"]
        assert slots == [
            {"day": "Tuesday", "startTime": "14:00", "endTime": "16:00", "isAvailable": True}
        ]
