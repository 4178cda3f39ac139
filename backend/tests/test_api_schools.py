"""
Tests d'intégration API pour les écoles et la session.
La façade est mockée (fixture gateway_mock).
"""

from datetime import datetime

from rolecaller.errors import ConnectivityError, InvalidCredentialsError, NotLoggedInError
from rolecaller.schemas.school import SchoolResponse
from rolecaller.services.gateway import SchoolSession


def make_session(role="admin") -> SchoolSession:
    school = SchoolResponse(id="s1", name="École du Centre", email="centre@ecole.be")
    return SchoolSession(school=school, role=role, opened_at=datetime(2026, 10, 12, 8, 0))


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_lifespan_initialise_le_cache_local(client, gateway_mock):
    gateway_mock.local.init.assert_called_once()
    gateway_mock.restore_session.assert_called_once()


# --- GET /api/v1/schools ---

def test_liste_des_ecoles(client, gateway_mock):
    gateway_mock.get_schools.return_value = [
        SchoolResponse(id="s1", name="École du Centre", email="centre@ecole.be"),
    ]
    resp = client.get("/api/v1/schools")

    assert resp.status_code == 200
    assert resp.json()[0]["id"] == "s1"
    assert "password" not in resp.json()[0]


def test_liste_des_ecoles_hors_ligne_503(client, gateway_mock):
    gateway_mock.get_schools.side_effect = ConnectivityError("Pas de connexion internet.")
    resp = client.get("/api/v1/schools")

    assert resp.status_code == 503
    assert resp.json()["detail"] == "Pas de connexion internet."


# --- POST /api/v1/auth/login ---

def test_login_admin(client, gateway_mock):
    gateway_mock.require_session.return_value = make_session()
    resp = client.post("/api/v1/auth/login", json={"email": "centre@ecole.be", "password": "secret"})

    assert resp.status_code == 200
    assert resp.json()["school"]["id"] == "s1"
    assert resp.json()["needs_teacher_name"] is False
    gateway_mock.login.assert_called_once_with("centre@ecole.be", "secret", "admin")


def test_login_enseignant_sans_identite(client, gateway_mock):
    gateway_mock.require_session.return_value = make_session(role="teacher")
    gateway_mock.get_teacher_identity.return_value = None
    resp = client.post(
        "/api/v1/auth/login",
        json={"email": "centre@ecole.be", "password": "secret", "role": "teacher"},
    )

    assert resp.status_code == 200
    assert resp.json()["needs_teacher_name"] is True


def test_login_mot_de_passe_invalide_401(client, gateway_mock):
    gateway_mock.login.side_effect = InvalidCredentialsError("Mot de passe invalide.")
    resp = client.post("/api/v1/auth/login", json={"email": "centre@ecole.be", "password": "x"})

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Mot de passe invalide."


def test_login_role_invalide_422(client):
    resp = client.post(
        "/api/v1/auth/login",
        json={"email": "centre@ecole.be", "password": "x", "role": "parent"},
    )
    assert resp.status_code == 422


# --- Session ---

def test_session_absente_401(client, gateway_mock):
    gateway_mock.require_session.side_effect = NotLoggedInError("Aucune école n'est connectée.")
    resp = client.get("/api/v1/auth/session")
    assert resp.status_code == 401


def test_logout(client, gateway_mock):
    resp = client.post("/api/v1/auth/logout")
    assert resp.status_code == 204
    gateway_mock.logout.assert_called_once()
