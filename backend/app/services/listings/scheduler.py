from typing import Set

from app import socketio
from .cleanup import run_cleanup


_running_apps: Set[int] = set()


def start_cleanup_scheduler(app) -> bool:
    """Run the cleanup job every CLEANUP_INTERVAL_SEC seconds in the background.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - No-ops when the interval is 0
    - Ensures a single loop per app
    Returns True when a loop was started.
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return False

    interval = int(app.config.get('CLEANUP_INTERVAL_SEC', 0) or 0)
    if interval <= 0:
        app.logger.info("[scheduler-off] CLEANUP_INTERVAL_SEC is 0")
        return False

    key = id(app)
    if key in _running_apps:
        app.logger.info("[scheduler-skip] cleanup loop already running")
        return False
    _running_apps.add(key)

    def _worker(delay: int):
        while key in _running_apps:
            socketio.sleep(delay)
            if key not in _running_apps:
                break
            with app.app_context():
                result = run_cleanup()
            if result['success']:
                app.logger.info(f"[scheduler-tick] deleted={result['deletedCount']}")
            else:
                # Next tick is the retry
                app.logger.warning(f"[scheduler-tick] cleanup failed: {result['error']}")

    app.logger.info(f"[scheduler-start] cleanup every {interval}s")
    socketio.start_background_task(_worker, interval)
    return True


def stop_cleanup_scheduler(app) -> None:
    """Ask the loop for ``app`` to exit after its current sleep."""
    _running_apps.discard(id(app))
