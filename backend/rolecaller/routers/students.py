"""
Router pour les élèves.
Import CSV (POST /api/v1/students/upload)
Listage (GET /api/v1/students)
Création manuelle (POST /api/v1/students)
Mise à jour (PUT /api/v1/students/{id})
Suppression (DELETE /api/v1/students/{id})
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from rolecaller.dependencies import get_gateway
from rolecaller.schemas.student import StudentCreate, StudentImportReport, StudentResponse, StudentUpdate
from rolecaller.services.gateway import EntityGateway
from rolecaller.services.student_import import import_students_csv

router = APIRouter(prefix="/api/v1/students", tags=["Élèves"])


@router.get("", response_model=List[StudentResponse], summary="Lister les élèves")
def list_students(
    school_id: str,
    class_id: Optional[str] = None,
    gateway: EntityGateway = Depends(get_gateway),
):
    """Élèves de l'école, éventuellement filtrés par classe, triés par nom."""
    return gateway.get_students(school_id, class_id)


@router.post("", response_model=StudentResponse, status_code=201, summary="Créer un élève manuellement")
def create_student(data: StudentCreate, gateway: EntityGateway = Depends(get_gateway)):
    return gateway.add_student(data)


@router.put("/{student_id}", response_model=StudentResponse, summary="Modifier un élève")
def update_student(student_id: str, data: StudentUpdate, gateway: EntityGateway = Depends(get_gateway)):
    """Met à jour les champs fournis d'un élève. Les champs absents ne sont pas modifiés."""
    return gateway.update_student(student_id, data)


@router.delete("/{student_id}", status_code=204, summary="Supprimer un élève")
def delete_student(student_id: str, gateway: EntityGateway = Depends(get_gateway)):
    gateway.delete_student(student_id)


ALLOWED_CONTENT_TYPES = {"text/csv", "text/plain", "application/vnd.ms-excel"}
MAX_FILE_SIZE_MB = 5


@router.post("/upload", response_model=StudentImportReport, summary="Importer des élèves via CSV")
async def upload_students(
    school_id: str,
    file: UploadFile = File(...),
    gateway: EntityGateway = Depends(get_gateway),
):
    """
    Importe une liste d'élèves depuis un fichier CSV (en ligne uniquement).

    Format attendu du CSV :
    - Colonne obligatoire : `name`
    - Colonnes optionnelles : `grade`, `class`
    - Séparateur : virgule (`,`) ou point-virgule (`;`)
    - Encodage : UTF-8 (avec ou sans BOM)

    Retourne un rapport détaillant les insertions et les rejets.
    """
    filename = file.filename or ""
    if file.content_type not in ALLOWED_CONTENT_TYPES and not filename.endswith(".csv"):
        raise HTTPException(
            status_code=400,
            detail="Format invalide. Seuls les fichiers CSV sont acceptés."
        )

    content = await file.read()

    if len(content) > MAX_FILE_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"Fichier trop volumineux. Taille maximale : {MAX_FILE_SIZE_MB} Mo."
        )

    if not content:
        raise HTTPException(status_code=400, detail="Le fichier CSV est vide.")

    return import_students_csv(content, school_id, gateway)
