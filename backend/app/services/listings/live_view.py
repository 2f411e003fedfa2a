"""Client-side live view of active listings.

A view is fed by two independent triggers: change notifications pushed by
the server and a local re-filter timer. Notifications cause a full re-read;
timer ticks only re-apply the expiry filter to what is already held. Both
end in :meth:`LiveListingView.recompute`, the single place the visible set
is derived.
"""
import logging
import threading
from datetime import datetime
from typing import Any, Callable, List, Optional

from .expiry import NO_GRACE, filter_active

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]
Subscribe = Callable[[Callable[[Any], None]], Unsubscribe]

DEFAULT_REFILTER_INTERVAL_SEC = 60.0


class _RepeatingTimer:
    def __init__(self, interval: float, callback: Callable[[], None],
                 on_error: Optional[Callable[[Exception], None]] = None):
        self.interval = interval
        self.callback = callback
        self.on_error = on_error
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name='listing-refilter', daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            # A failing tick must not end the loop
            try:
                self.callback()
            except Exception as exc:
                if self.on_error is not None:
                    self.on_error(exc)
                else:
                    logger.exception("listing re-filter tick failed")

    def cancel(self) -> None:
        self._stopped.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.interval + 1)

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()


class LiveListingView:
    """Keeps a locally held listing set converged with the server.

    ``fetch_listings`` returns the full listing set ordered by date then time
    (dicts as served by ``GET /api/listings`` or ORM rows). ``subscribe``
    registers a change callback and returns a function that removes it.
    ``on_error`` receives read/subscribe failures; the previous view stays in
    place until the next successful read.
    """

    def __init__(self, fetch_listings: Callable[[], List], subscribe: Subscribe,
                 on_error: Optional[Callable[[Exception], None]] = None,
                 refilter_interval: float = DEFAULT_REFILTER_INTERVAL_SEC,
                 clock: Callable[[], datetime] = datetime.now,
                 on_change: Optional[Callable[[List], None]] = None):
        self.fetch_listings = fetch_listings
        self.subscribe = subscribe
        self.on_error = on_error
        self.on_change = on_change
        self.refilter_interval = refilter_interval
        self.clock = clock
        self._lock = threading.RLock()
        self._source: List = []
        self._visible: List = []
        self._read_seq = 0
        self._applied_seq = 0
        self._unsubscribe: Optional[Unsubscribe] = None
        self._timer: Optional[_RepeatingTimer] = None

    @property
    def listings(self) -> List:
        with self._lock:
            return list(self._visible)

    @property
    def running(self) -> bool:
        return self._unsubscribe is not None or self._timer is not None

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            try:
                self._unsubscribe = self.subscribe(self.handle_change)
            except Exception as exc:
                self._report(exc)
            self.refresh()
            if self.refilter_interval and self.refilter_interval > 0:
                self._timer = _RepeatingTimer(self.refilter_interval, self.recompute, on_error=self._report)
                self._timer.start()

    def stop(self) -> None:
        with self._lock:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            timer, self._timer = self._timer, None
        if unsubscribe is not None:
            try:
                unsubscribe()
            except Exception as exc:
                self._report(exc)
        if timer is not None:
            timer.cancel()

    def handle_change(self, payload: Any = None) -> None:
        logger.debug("listings changed: %s", payload)
        self.refresh()

    def refresh(self) -> bool:
        """Re-read the full set from the server and recompute. False on failure.

        Reads may overlap when notifications arrive on separate tasks; a read
        that completes after a later-started one is discarded.
        """
        with self._lock:
            self._read_seq += 1
            seq = self._read_seq
        try:
            rows = list(self.fetch_listings())
        except Exception as exc:
            self._report(exc)
            return False
        with self._lock:
            if seq < self._applied_seq:
                return True
            self._applied_seq = seq
            self._source = rows
        self.recompute()
        return True

    def recompute(self, now: Optional[datetime] = None) -> List:
        with self._lock:
            visible = filter_active(self._source, now or self.clock(), NO_GRACE)
            changed = visible != self._visible
            self._visible = visible
        if changed and self.on_change is not None:
            self.on_change(list(visible))
        return list(visible)

    def _report(self, exc: Exception) -> None:
        logger.warning("live listing view error: %s", exc)
        if self.on_error is not None:
            self.on_error(exc)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.stop()


def socketio_subscription(client, namespace: str = '/ws') -> Subscribe:
    """Adapt a python-socketio style client (``on``/``emit``) to ``subscribe``."""

    def subscribe(callback):
        state = {'active': True}

        def _on_changed(payload=None):
            if state['active']:
                callback(payload)

        client.on('listings_changed', _on_changed, namespace=namespace)
        client.emit('subscribe_listings', {}, namespace=namespace)

        def unsubscribe():
            if not state['active']:
                return
            state['active'] = False
            client.emit('unsubscribe_listings', {}, namespace=namespace)

        return unsubscribe

    return subscribe
