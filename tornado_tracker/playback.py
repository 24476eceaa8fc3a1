"""Auto-advancing time-lapse over the year window."""

import logging
import threading
import weakref

from tornado_tracker.constants import MAX_YEAR, MIN_YEAR, PLAYBACK_INTERVAL_MS
from tornado_tracker.state import YearRange

logger = logging.getLogger(__name__)


def advance_window(start, end, min_year=MIN_YEAR, max_year=MAX_YEAR):
    """Slide the window one year forward, keeping its width and wrapping at the end."""
    width = end - start
    new_start, new_end = start + 1, end + 1
    if new_end > max_year:
        new_start, new_end = min_year, min_year + width
        if new_end > max_year:
            new_start, new_end = max_year - width, max_year
    return YearRange(new_start, new_end)


class RepeatingTimer:
    """Call ``callback`` every ``interval`` seconds on a daemon thread.

    Runs until cancelled or until ``callback`` returns False.
    """

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._run, name="playback-timer", daemon=True)

    def start(self):
        self._thread.start()

    def cancel(self):
        self._cancelled.set()

    def _run(self):
        while not self._cancelled.wait(self.interval):
            if self.callback() is False:
                break


class PlaybackScheduler:
    """Stopped/Playing state machine driving a fixed-period tick.

    ``lock`` is shared with whatever else mutates the state being animated;
    every tick runs under it and is dropped if playback was stopped (or
    restarted) after the timer fired, so nothing ticks once ``stop`` returns.

    The timer only holds a weak reference to the scheduler: once the
    scheduler (and whatever owns it) is garbage collected the timer ends.
    A tick that raises stops playback.
    """

    def __init__(self, on_tick, interval_ms=PLAYBACK_INTERVAL_MS, timer_factory=RepeatingTimer,
                 lock=None, on_stop=None):
        self.on_tick = on_tick
        self.on_stop = on_stop
        self.interval_ms = interval_ms
        self.timer_factory = timer_factory
        self._lock = lock if lock is not None else threading.RLock()
        self._timer = None
        self._finalizer = None
        self._generation = 0
        self._playing = False

    @property
    def is_playing(self):
        return self._playing

    def start(self):
        with self._lock:
            if self._playing:
                return False
            self._playing = True
            self._generation += 1
            self._timer = self.timer_factory(
                self.interval_ms / 1000.0, _weak_tick(self, self._generation)
            )
            self._finalizer = weakref.finalize(self, self._timer.cancel)
            self._timer.start()
        logger.info("Playback started (every %d ms)", self.interval_ms)
        return True

    def stop(self):
        with self._lock:
            if not self._playing:
                return False
            self._playing = False
            self._generation += 1
            timer, self._timer = self._timer, None
            self._finalizer.detach()
            self._finalizer = None
            timer.cancel()
            if self.on_stop is not None:
                self.on_stop()
        logger.info("Playback stopped")
        return True

    def _fire(self, generation):
        with self._lock:
            if not self._playing or generation != self._generation:
                return
            try:
                self.on_tick()
            except Exception:
                logger.exception("Playback tick failed, stopping playback")
                self.stop()


def _weak_tick(scheduler, generation):
    ref = weakref.ref(scheduler)

    def tick():
        target = ref()
        if target is None:
            return False
        target._fire(generation)
        return True

    return tick
