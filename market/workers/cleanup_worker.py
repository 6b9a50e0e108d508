"""
Cleanup worker: expires idle web sessions.
"""

import threading

from loguru import logger

from market.db.repos.sessions_repo import delete_expired_sessions


class CleanupWorker:
    def __init__(self, settings, db_conn) -> None:
        self._settings = settings
        self._db = db_conn
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="cleanup", daemon=True)

    def start(self) -> None:
        self._thread.start()
        logger.info(
            "Cleanup worker started (interval={}s, ttl={}m)",
            self._settings.cleanup_interval_seconds,
            self._settings.session_ttl_minutes,
        )

    def stop(self) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join(timeout=10)
        logger.info("Cleanup worker stopped")

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.tick()
            except Exception as e:
                logger.error("Cleanup tick failed: {}", e)
            self._stop.wait(self._settings.cleanup_interval_seconds)

    def tick(self) -> int:
        expired = delete_expired_sessions(self._db, ttl_minutes=self._settings.session_ttl_minutes)
        if expired:
            logger.info("Expired sessions deleted: {}", expired)
        return expired
