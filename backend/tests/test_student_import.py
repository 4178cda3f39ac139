"""
Tests unitaires pour le service d'import CSV élèves.
"""

from unittest.mock import MagicMock

import pytest

from rolecaller.errors import ConnectivityError
from rolecaller.services.student_import import import_students_csv, parse_roster_csv


def make_gateway(inserted=None, classes_created=0):
    """Façade mockée : upload_students retourne (insérés, classes créées)."""
    gateway = MagicMock()
    gateway.upload_students.side_effect = lambda school_id, rows: (
        inserted if inserted is not None else len(rows),
        classes_created,
    )
    return gateway


# --- Cas nominaux ---

def test_import_csv_basique():
    csv_content = b"name,grade,class\nAlice,6e,1A\nBob,,\n"
    gateway = make_gateway(classes_created=1)

    report = import_students_csv(csv_content, "s1", gateway)

    assert report.total_rows == 2
    assert report.inserted == 2
    assert report.rejected == 0
    assert report.classes_created == 1
    rows = gateway.upload_students.call_args.args[1]
    assert rows[0].class_name == "1A"
    assert rows[1].grade is None


def test_import_csv_separateur_point_virgule():
    """Le séparateur point-virgule (export Excel FR) doit être détecté."""
    rows, errors, total, _ = parse_roster_csv(b"name;grade\nAlice;6e\n")

    assert total == 1
    assert errors == []
    assert rows[0].grade == "6e"


def test_import_csv_avec_bom():
    """Les fichiers CSV avec BOM UTF-8 (Excel) doivent être gérés."""
    rows, errors, _, _ = parse_roster_csv("Name\nAlice\n".encode("utf-8-sig"))

    assert [r.name for r in rows] == ["Alice"]
    assert errors == []


def test_lignes_vides_ignorees():
    rows, _, total, _ = parse_roster_csv(b"name,grade\nAlice,6e\n,\n\nBob,5e\n")

    assert total == 2
    assert len(rows) == 2


# --- Rejets ---

def test_colonne_name_manquante():
    report = import_students_csv(b"nom,prenom\nDupont,Jean\n", "s1", make_gateway())

    assert report.inserted == 0
    assert report.rejected == 1
    assert "name" in report.errors[0].reason


def test_nom_manquant_rejete():
    rows, errors, total, _ = parse_roster_csv(b"name,grade\n,6e\nAlice,6e\n")

    assert total == 2
    assert len(rows) == 1
    assert errors[0].row == 2
    assert errors[0].reason == "Nom manquant"


def test_doublons_intra_fichier():
    report = import_students_csv(b"name\nAlice\nalice\nBob\n", "s1", make_gateway())

    assert report.inserted == 2
    assert report.duplicates_in_file == 1
    assert report.errors[0].reason == "Doublon dans le fichier CSV"


def test_fichier_vide():
    report = import_students_csv(b"", "s1", make_gateway())

    assert report.total_rows == 0
    assert report.rejected == 1


def test_aucune_ligne_valide_aucun_envoi():
    gateway = make_gateway()
    import_students_csv(b"name,grade\n,6e\n", "s1", gateway)
    gateway.upload_students.assert_not_called()


def test_import_hors_ligne_propage_l_erreur():
    gateway = MagicMock()
    gateway.upload_students.side_effect = ConnectivityError("Pas de connexion internet.")

    with pytest.raises(ConnectivityError):
        import_students_csv(b"name\nAlice\n", "s1", gateway)


def test_fichier_latin1_rejete_sans_envoi():
    """Un export Excel en Latin-1 est rejeté avec un rapport, pas une erreur 500."""
    gateway = make_gateway()
    report = import_students_csv("name\nÉlodie\n".encode("latin-1"), "s1", gateway)

    assert report.inserted == 0
    assert report.rejected == 1
    assert report.errors[0].row == 0
    assert report.errors[0].reason == "Encodage invalide, UTF-8 attendu"
    gateway.upload_students.assert_not_called()
