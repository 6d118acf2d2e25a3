"""Background loop that sweeps expired sessions, codes and abuse counters."""

import threading
from typing import Optional

from ecolimpio.app import EcoLimpioApp
from ecolimpio.utils.logger import get_logger

logger = get_logger(__name__)
_stop = threading.Event()
_thread: Optional[threading.Thread] = None


def _loop(app: EcoLimpioApp, interval_seconds: int = 60):
    while not _stop.wait(interval_seconds):
        try:
            app.run_maintenance()
        except Exception as e:
            logger.warning("Maintenance cycle error", error=str(e))


def start_maintenance(app: EcoLimpioApp, interval_seconds: int = 60) -> None:
    global _thread
    if _thread is not None:
        return
    _stop.clear()
    _thread = threading.Thread(
        target=_loop,
        args=(app, interval_seconds),
        daemon=True,
        name="maintenance",
    )
    _thread.start()
    logger.info("Maintenance job started", interval_seconds=interval_seconds)


def stop_maintenance() -> None:
    global _thread
    _stop.set()
    if _thread is not None:
        # Daemon thread exits with the process if it does not stop in time
        _thread.join(timeout=2)
        if _thread.is_alive():
            logger.warning("Maintenance thread still alive after timeout, continuing shutdown")
        _thread = None
    logger.info("Maintenance job stopped")
