"""
Tests d'intégration API pour les classes.
"""

from rolecaller.errors import ConnectivityError, NotFoundError
from rolecaller.schemas.school_class import ClassResponse


def test_liste_classes(client, gateway_mock):
    gateway_mock.get_classes.return_value = [ClassResponse(id="c1", school_id="s1", name="1A")]
    resp = client.get("/api/v1/classes", params={"school_id": "s1"})

    assert resp.status_code == 200
    assert resp.json()[0]["name"] == "1A"
    gateway_mock.get_classes.assert_called_once_with("s1")


def test_liste_classes_school_id_requis(client):
    assert client.get("/api/v1/classes").status_code == 422


def test_creer_classe(client, gateway_mock):
    gateway_mock.add_class.return_value = ClassResponse(id="c1", school_id="s1", name="1A")
    resp = client.post("/api/v1/classes", json={"name": " 1A ", "school_id": "s1"})

    assert resp.status_code == 201
    gateway_mock.add_class.assert_called_once_with("1A", "s1")


def test_creer_classe_nom_vide_422(client):
    resp = client.post("/api/v1/classes", json={"name": "  ", "school_id": "s1"})
    assert resp.status_code == 422


def test_creer_classe_hors_ligne_503(client, gateway_mock):
    gateway_mock.add_class.side_effect = ConnectivityError("Pas de connexion internet.")
    resp = client.post("/api/v1/classes", json={"name": "1A", "school_id": "s1"})
    assert resp.status_code == 503


def test_supprimer_classe_introuvable_404(client, gateway_mock):
    gateway_mock.delete_class.side_effect = NotFoundError("Classe introuvable.")
    resp = client.delete("/api/v1/classes/inconnue")

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Classe introuvable."
