"""
Oracle de connectivité réseau.

Remplace le drapeau global mis à jour par un listener : l'état connu est porté
par l'objet lui-même, alimenté par une souscription injectée (notify) et par
chaque sonde réussie.

Règles de la sonde (is_online) :
- une réponse HTTP quelconque → en ligne ;
- connexion refusée / DNS introuvable → hors-ligne ;
- timeout ou toute autre erreur de sonde → dernier état connu.
is_online() ne lève jamais d'exception.
"""

import logging
import threading
from typing import Callable, Optional

import httpx

from rolecaller.config import settings

logger = logging.getLogger(__name__)

Probe = Callable[[], bool]
Subscribe = Callable[[Callable[[bool], None]], None]


def http_probe(url: str, timeout: float) -> Probe:
    """Construit une sonde HTTP bornée par `timeout` secondes."""

    def probe() -> bool:
        try:
            httpx.head(url, timeout=timeout, follow_redirects=False)
        except httpx.ConnectError:
            return False
        return True

    return probe


class ConnectivityOracle:
    def __init__(
        self,
        probe: Optional[Probe] = None,
        subscribe: Optional[Subscribe] = None,
        initial: bool = True,
    ):
        self._probe = probe or http_probe(
            settings.CONNECTIVITY_PROBE_URL, settings.CONNECTIVITY_TIMEOUT_SECONDS
        )
        self._last_known = initial
        self._lock = threading.Lock()
        if subscribe is not None:
            subscribe(self.notify)

    @property
    def last_known(self) -> bool:
        """Dernier état observé, sans sonde."""
        return self._last_known

    def notify(self, connected: bool) -> None:
        """Événement de changement d'état réseau."""
        connected = bool(connected)
        with self._lock:
            changed = connected != self._last_known
            self._last_known = connected
        if changed:
            logger.info("Réseau : %s", "EN LIGNE" if connected else "HORS-LIGNE")

    def is_online(self) -> bool:
        try:
            connected = self._probe()
        except Exception as exc:
            logger.warning(
                "Sonde réseau en échec (%s), dernier état connu utilisé : %s",
                exc, self._last_known,
            )
            return self._last_known
        self.notify(connected)
        return bool(connected)
