"""
Émetteur de notifications d'échec de paiement, limité à une notification en cours:
tant que la précédente n'a pas expiré (fenêtre fixe), les suivantes sont ignorées.
"""
import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class FailureNotifier:
    def __init__(self, window_seconds: float = 3.0, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._message: Optional[str] = None
        self._emitted_at = 0.0

    def _expire(self) -> None:
        if self._message is not None and self._clock() - self._emitted_at >= self.window_seconds:
            self._message = None

    def notify(self, message: str) -> bool:
        """Émet `message` si aucune notification n'est en cours; retourne True si émise."""
        with self._lock:
            self._expire()
            if self._message is not None:
                return False
            self._message = message
            self._emitted_at = self._clock()
        logger.warning("payments.notice %s", message)
        return True

    def current(self) -> Optional[str]:
        with self._lock:
            self._expire()
            return self._message
