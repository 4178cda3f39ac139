"""
Tests de la tâche planifiée de surveillance réseau.
"""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from rolecaller import scheduler
from rolecaller.errors import SyncInProgressError
from rolecaller.schemas.school_class import ClassResponse
from rolecaller.schemas.sync import PushReport
from rolecaller.services.connectivity import ConnectivityOracle
from rolecaller.services.gateway import EntityGateway


@pytest.fixture(autouse=True)
def reset_last_probe(monkeypatch):
    monkeypatch.setattr(scheduler, "_last_probe", None)


def make_gateway(now_online):
    gateway = MagicMock()
    gateway.oracle.is_online.return_value = now_online
    gateway.push_offline_attendance.return_value = PushReport(total=0, pushed_count=0, failures=[])
    return gateway


def run_watch(gateway, auto_push=True):
    with patch("rolecaller.dependencies.get_gateway", return_value=gateway), \
         patch.object(scheduler.settings, "AUTO_PUSH_ON_RECONNECT", auto_push):
        scheduler._watch_connectivity()


def test_retour_en_ligne_declenche_le_push():
    gateway = make_gateway(now_online=False)
    run_watch(gateway)
    gateway.oracle.is_online.return_value = True
    run_watch(gateway)
    gateway.push_offline_attendance.assert_called_once()


def test_premiere_sonde_en_ligne_aucun_push():
    gateway = make_gateway(now_online=True)
    run_watch(gateway)
    gateway.push_offline_attendance.assert_not_called()


def test_deja_en_ligne_aucun_push():
    gateway = make_gateway(now_online=True)
    run_watch(gateway)
    run_watch(gateway)
    gateway.push_offline_attendance.assert_not_called()


def test_push_automatique_desactive():
    gateway = make_gateway(now_online=False)
    run_watch(gateway, auto_push=False)
    gateway.oracle.is_online.return_value = True
    run_watch(gateway, auto_push=False)
    gateway.push_offline_attendance.assert_not_called()


def test_synchronisation_deja_en_cours_ignoree():
    gateway = make_gateway(now_online=False)
    run_watch(gateway)
    gateway.oracle.is_online.return_value = True
    gateway.push_offline_attendance.side_effect = SyncInProgressError("Une synchronisation est déjà en cours.")
    run_watch(gateway)
    gateway.push_offline_attendance.assert_called_once()


def test_appel_de_la_facade_entre_deux_sondes_ne_masque_pas_le_retour(local_store):
    """Un appel qui sonde le réseau avant la tâche ne doit pas consommer la transition."""
    network = {"up": False}
    remote = MagicMock()
    gateway = EntityGateway(ConnectivityOracle(probe=lambda: network["up"], initial=False), local_store, remote)
    local_store.upsert_class(ClassResponse(id="c1", school_id="s1", name="1A"))
    gateway.mark_attendance("st1", "c1", date(2026, 10, 12), "present")

    run_watch(gateway)
    network["up"] = True
    gateway.get_schools()
    assert gateway.oracle.last_known is True

    run_watch(gateway)

    remote.upsert_attendance.assert_called_once()
    assert gateway.get_unsynced_count() == 0
