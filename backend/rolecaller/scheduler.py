"""
Planificateur APScheduler : surveillance de la connectivité.

Sur l'appareil, il sert de flux d'événements réseau pour l'oracle : le job sonde
le réseau à intervalle régulier et met à jour le dernier état connu.
Si AUTO_PUSH_ON_RECONNECT est activé, un retour en ligne déclenche l'envoi
des présences hors-ligne.
"""

import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from rolecaller.config import settings
from rolecaller.errors import RolecallerError, SyncInProgressError

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()

# Dernier état vu par la tâche elle-même (None avant la première sonde).
# Les appels de la façade mettent à jour oracle.last_known, pas cette valeur.
_last_probe: Optional[bool] = None


def _watch_connectivity() -> None:
    """
    Tâche planifiée : sonde le réseau ; sur une transition hors-ligne → en ligne,
    envoie les présences en attente (si activé).
    Import local pour éviter les imports circulaires.
    """
    global _last_probe
    from rolecaller.dependencies import get_gateway

    gateway = get_gateway()
    online = gateway.oracle.is_online()
    was_online = _last_probe is not False
    _last_probe = online

    if was_online or not online or not settings.AUTO_PUSH_ON_RECONNECT:
        return

    try:
        report = gateway.push_offline_attendance()
        logger.info(
            "Retour en ligne : %d présences envoyées, %d erreurs",
            report.pushed_count, len(report.failures),
        )
    except SyncInProgressError:
        logger.debug("Synchronisation déjà en cours, envoi automatique ignoré")
    except RolecallerError as exc:
        logger.error("Envoi automatique des présences en échec : %s", exc.message)


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    scheduler.add_job(
        _watch_connectivity,
        trigger="interval",
        seconds=settings.CONNECTIVITY_CHECK_INTERVAL_SECONDS,
        id="connectivity_watch",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler démarré, vérification réseau toutes les %d s.",
        settings.CONNECTIVITY_CHECK_INTERVAL_SECONDS,
    )


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
