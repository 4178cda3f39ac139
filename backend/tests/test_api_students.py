"""
Tests d'intégration API pour les élèves (liste, CRUD, import CSV).
"""

from rolecaller.errors import ConnectivityError, NotFoundError
from rolecaller.schemas.student import StudentResponse


def make_student(**kwargs) -> StudentResponse:
    return StudentResponse(
        id=kwargs.get("id", "st1"),
        school_id=kwargs.get("school_id", "s1"),
        class_id=kwargs.get("class_id", "c1"),
        name=kwargs.get("name", "Alice"),
        grade=kwargs.get("grade"),
    )


# --- GET /api/v1/students ---

class TestListStudents:
    def test_liste_vide(self, client, gateway_mock):
        gateway_mock.get_students.return_value = []
        resp = client.get("/api/v1/students", params={"school_id": "s1"})

        assert resp.status_code == 200
        assert resp.json() == []

    def test_filtre_par_classe(self, client, gateway_mock):
        gateway_mock.get_students.return_value = [make_student()]
        resp = client.get("/api/v1/students", params={"school_id": "s1", "class_id": "c1"})

        assert resp.status_code == 200
        assert resp.json()[0]["name"] == "Alice"
        gateway_mock.get_students.assert_called_once_with("s1", "c1")


# --- CRUD ---

class TestStudentCrud:
    def test_creer_eleve(self, client, gateway_mock):
        gateway_mock.add_student.return_value = make_student()
        resp = client.post("/api/v1/students", json={"name": "Alice", "school_id": "s1", "class_id": "c1"})

        assert resp.status_code == 201
        assert resp.json()["id"] == "st1"

    def test_modifier_eleve(self, client, gateway_mock):
        gateway_mock.update_student.return_value = make_student(grade="6e")
        resp = client.put("/api/v1/students/st1", json={"grade": "6e"})

        assert resp.status_code == 200
        assert resp.json()["grade"] == "6e"
        data = gateway_mock.update_student.call_args.args[1]
        assert data.model_dump(exclude_unset=True) == {"grade": "6e"}

    def test_modifier_eleve_introuvable_404(self, client, gateway_mock):
        gateway_mock.update_student.side_effect = NotFoundError("Élève introuvable.")
        resp = client.put("/api/v1/students/inconnu", json={"name": "Bob"})
        assert resp.status_code == 404

    def test_modifier_eleve_nom_null_422(self, client, gateway_mock):
        resp = client.put("/api/v1/students/st1", json={"name": None})

        assert resp.status_code == 422
        gateway_mock.update_student.assert_not_called()

    def test_modifier_eleve_retirer_la_classe(self, client, gateway_mock):
        gateway_mock.update_student.return_value = make_student(class_id=None)
        resp = client.put("/api/v1/students/st1", json={"class_id": None})

        assert resp.status_code == 200
        data = gateway_mock.update_student.call_args.args[1]
        assert data.model_dump(exclude_unset=True) == {"class_id": None}

    def test_supprimer_eleve_hors_ligne_503(self, client, gateway_mock):
        gateway_mock.delete_student.side_effect = ConnectivityError("Pas de connexion internet.")
        resp = client.delete("/api/v1/students/st1")
        assert resp.status_code == 503


# --- POST /api/v1/students/upload ---

class TestUploadStudents:
    def test_upload_csv(self, client, gateway_mock):
        gateway_mock.upload_students.return_value = (2, 1)
        resp = client.post(
            "/api/v1/students/upload",
            params={"school_id": "s1"},
            files={"file": ("eleves.csv", b"name,class\nAlice,1A\nBob,1A\n", "text/csv")},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["inserted"] == 2
        assert body["classes_created"] == 1

    def test_upload_format_invalide(self, client):
        resp = client.post(
            "/api/v1/students/upload",
            params={"school_id": "s1"},
            files={"file": ("eleves.pdf", b"%PDF", "application/pdf")},
        )
        assert resp.status_code == 400

    def test_upload_fichier_vide(self, client):
        resp = client.post(
            "/api/v1/students/upload",
            params={"school_id": "s1"},
            files={"file": ("eleves.csv", b"", "text/csv")},
        )
        assert resp.status_code == 400

    def test_upload_encodage_invalide(self, client, gateway_mock):
        resp = client.post(
            "/api/v1/students/upload",
            params={"school_id": "s1"},
            files={"file": ("eleves.csv", "name\nÉlodie\n".encode("latin-1"), "text/csv")},
        )

        assert resp.status_code == 200
        assert resp.json()["errors"][0]["reason"] == "Encodage invalide, UTF-8 attendu"
        gateway_mock.upload_students.assert_not_called()

    def test_upload_hors_ligne_503(self, client, gateway_mock):
        gateway_mock.upload_students.side_effect = ConnectivityError("Pas de connexion internet.")
        resp = client.post(
            "/api/v1/students/upload",
            params={"school_id": "s1"},
            files={"file": ("eleves.csv", b"name\nAlice\n", "text/csv")},
        )
        assert resp.status_code == 503
