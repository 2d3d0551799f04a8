"""
Background maintenance: periodic pruning of the admission limiter, the
revocation ledger and the refresh store.

Runs in its own daemon thread with an explicit start/stop lifecycle. Each
cycle uses its own scoped DB session and releases it afterwards.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from models import storage
from services.limiter import AdmissionLimiter
from services.refresh_store import RefreshStore
from services.revocation import RevocationLedger

logger = logging.getLogger(__name__)


class MaintenanceWorker:

    def __init__(
        self,
        limiter: AdmissionLimiter,
        ledger: RevocationLedger,
        refresh_store: RefreshStore,
        interval: float = 300.0,
    ) -> None:
        self.limiter = limiter
        self.ledger = ledger
        self.refresh_store = refresh_store
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="auth-maintenance", daemon=True)
        self._thread.start()
        logger.info("Maintenance worker started", extra={"interval": self.interval})

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("Maintenance worker stopped")

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.run_once()

    def run_once(self) -> Dict[str, int]:
        """Run one sweep. Storage failures are logged; the next cycle retries."""
        result = {"rate_windows": self.limiter.prune(), "revocations": 0, "refresh_tokens": 0}
        try:
            result["revocations"] = self.ledger.purge_expired()
            result["refresh_tokens"] = self.refresh_store.purge_expired()
        except SQLAlchemyError:
            logger.exception("Maintenance sweep failed")
        finally:
            storage.close()
        logger.debug("Maintenance sweep finished", extra=result)
        return result
