"""
Service d'import CSV pour les élèves.
Gère le parsing, la validation et la détection de doublons, puis délègue
l'insertion du lot à la façade (en ligne uniquement).

Colonne optionnelle `class` : si présente, l'élève est assigné à la classe
portant ce nom dans l'école (créée si elle n'existe pas encore).
"""

import csv
import io
from typing import List, Set, Tuple

from rolecaller.schemas.student import ImportError, StudentImportReport, StudentImportRow
from rolecaller.services.gateway import EntityGateway

# Colonne obligatoire du CSV (insensible à la casse) ; grade et class sont optionnelles
REQUIRED_COLUMNS = {"name"}


def _normalize_header(raw: str) -> str:
    """Normalise un nom de colonne : minuscules, sans espaces."""
    return raw.strip().lower()


def _detect_separator(sample: str) -> str:
    """Détecte le séparateur CSV (virgule ou point-virgule)."""
    if sample.count(";") > sample.count(","):
        return ";"
    return ","


def parse_roster_csv(content: bytes) -> Tuple[List[StudentImportRow], List[ImportError], int, int]:
    """
    Parse le CSV et valide chaque ligne.
    Retourne (lignes valides, erreurs, nombre de lignes lues, doublons intra-fichier).

    Règles :
    - Colonne requise : name
    - Colonnes optionnelles : grade, class
    - Ligne entièrement vide : ignorée
    - Fichier non UTF-8 : rejeté en entier
    - Doublon intra-fichier : même nom (insensible à la casse)
    """
    try:
        text = content.decode("utf-8-sig")  # utf-8-sig gère le BOM Excel
    except UnicodeDecodeError:
        return [], [ImportError(row=0, content="", reason="Encodage invalide, UTF-8 attendu")], 0, 0
    lines = text.splitlines()
    separator = _detect_separator(lines[0] if lines else "")

    reader = csv.DictReader(io.StringIO(text), delimiter=separator)

    if reader.fieldnames is None:
        return [], [ImportError(row=0, content="", reason="Fichier CSV vide ou illisible")], 0, 0

    field_map = {_normalize_header(f): f for f in reader.fieldnames if f}
    missing = REQUIRED_COLUMNS - set(field_map)
    if missing:
        return [], [ImportError(
            row=0, content=str(reader.fieldnames),
            reason=f"Colonnes manquantes : {', '.join(sorted(missing))}"
        )], 0, 0

    valid_rows: List[StudentImportRow] = []
    errors: List[ImportError] = []
    seen_in_file: Set[str] = set()
    duplicates_in_file = 0
    total_rows = 0

    for row_num, row in enumerate(reader, start=2):  # ligne 1 = header
        raw_name = (row.get(field_map["name"]) or "").strip()
        raw_grade = (row.get(field_map["grade"]) or "").strip() if "grade" in field_map else ""
        raw_class = (row.get(field_map["class"]) or "").strip() if "class" in field_map else ""

        # Ligne vide
        if not raw_name and not raw_grade and not raw_class:
            continue
        total_rows += 1

        if not raw_name:
            errors.append(ImportError(
                row=row_num,
                content=f"{raw_grade}, {raw_class}",
                reason="Nom manquant"
            ))
            continue

        key = raw_name.lower()
        if key in seen_in_file:
            duplicates_in_file += 1
            errors.append(ImportError(
                row=row_num,
                content=raw_name,
                reason="Doublon dans le fichier CSV"
            ))
            continue
        seen_in_file.add(key)

        valid_rows.append(StudentImportRow(
            name=raw_name,
            grade=raw_grade or None,
            class_name=raw_class or None,
        ))

    return valid_rows, errors, total_rows, duplicates_in_file


def import_students_csv(content: bytes, school_id: str, gateway: EntityGateway) -> StudentImportReport:
    """Parse le CSV puis envoie le lot valide à la base distante via la façade."""
    valid_rows, errors, total_rows, duplicates_in_file = parse_roster_csv(content)

    inserted, classes_created = 0, 0
    if valid_rows:
        inserted, classes_created = gateway.upload_students(school_id, valid_rows)

    return StudentImportReport(
        total_rows=total_rows,
        inserted=inserted,
        rejected=len(errors),
        duplicates_in_file=duplicates_in_file,
        classes_created=classes_created,
        errors=errors,
    )
