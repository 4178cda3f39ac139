"""
Taxonomie des erreurs du cœur offline-first.
Chaque erreur porte le code HTTP utilisé par les handlers de main.py.
"""


class RolecallerError(Exception):
    """Erreur de base de l'application."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""


class ConnectivityError(RolecallerError):
    """Pas de connexion internet."""

    status_code = 503


class NotFoundError(RolecallerError):
    """Élément introuvable."""

    status_code = 404


class ConflictError(RolecallerError):
    """Conflit d'écriture."""

    status_code = 409


class StoreError(RolecallerError):
    """Erreur de stockage."""

    status_code = 500


class ValidationError(RolecallerError):
    """Données invalides."""

    status_code = 422


class InvalidCredentialsError(RolecallerError):
    """Identifiants invalides."""

    status_code = 401


class NotLoggedInError(RolecallerError):
    """Aucune école n'est connectée."""

    status_code = 401


class SyncInProgressError(RolecallerError):
    """Une synchronisation est déjà en cours."""

    status_code = 409
