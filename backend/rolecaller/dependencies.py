"""
Dépendances FastAPI : une seule façade par processus (un appareil = une session).
Les tests remplacent get_gateway via app.dependency_overrides.
"""

from typing import Optional

from rolecaller.services.connectivity import ConnectivityOracle
from rolecaller.services.gateway import EntityGateway
from rolecaller.services.local_store import LocalStore
from rolecaller.services.remote_store import RemoteStore

_gateway: Optional[EntityGateway] = None


def build_gateway() -> EntityGateway:
    return EntityGateway(
        oracle=ConnectivityOracle(),
        local=LocalStore(),
        remote=RemoteStore(),
    )


def get_gateway() -> EntityGateway:
    """Dépendance FastAPI : fournit la façade partagée, créée au premier appel."""
    global _gateway
    if _gateway is None:
        _gateway = build_gateway()
    return _gateway
