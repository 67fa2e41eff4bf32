"""
Deferred callbacks on the UI main loop.

Every piece of delayed work in the editor (query debouncing, scroll guard
release, scrolling a highlight into view once it is on screen) goes through
a Scheduler so the same code runs against the GLib main loop in the
application and against a manually advanced clock in tests.
"""

from typing import Any, Callable, Dict, Optional, Tuple


class Scheduler:
    """Interface for scheduling callbacks on the single UI thread."""

    def timeout_add(self, delay_ms: int, callback: Callable[[], Any]) -> Any:
        """Run ``callback`` once after ``delay_ms`` milliseconds. Returns a handle."""
        raise NotImplementedError

    def idle_add(self, callback: Callable[[], Any]) -> Any:
        """Run ``callback`` once the loop has no pending higher-priority work."""
        raise NotImplementedError

    def next_frame(self, callback: Callable[[], Any]) -> Any:
        """Run ``callback`` after the next redraw has been processed."""
        return self.idle_add(callback)

    def cancel(self, handle: Any) -> None:
        """Cancel a pending callback. Unknown or already-fired handles are ignored."""
        raise NotImplementedError


class GLibScheduler(Scheduler):
    """Scheduler backed by the GLib main loop used by GTK."""

    def __init__(self):
        from gi.repository import GLib
        self._glib = GLib
        self._pending = set()

    def _once(self, callback: Callable[[], Any]) -> Tuple[Callable[[], bool], Dict[str, Any]]:
        holder = {}

        def run():
            self._pending.discard(holder.get('id'))
            callback()
            # One-shot: returning False removes the GLib source.
            return False

        return run, holder

    def timeout_add(self, delay_ms: int, callback: Callable[[], Any]) -> int:
        run, holder = self._once(callback)
        source_id = self._glib.timeout_add(int(delay_ms), run)
        holder['id'] = source_id
        self._pending.add(source_id)
        return source_id

    def idle_add(self, callback: Callable[[], Any]) -> int:
        run, holder = self._once(callback)
        source_id = self._glib.idle_add(run)
        holder['id'] = source_id
        self._pending.add(source_id)
        return source_id

    def next_frame(self, callback: Callable[[], Any]) -> int:
        # GDK redraws run at HIGH_IDLE + 20; DEFAULT_IDLE fires after the frame.
        run, holder = self._once(callback)
        source_id = self._glib.idle_add(run, priority=self._glib.PRIORITY_DEFAULT_IDLE)
        holder['id'] = source_id
        self._pending.add(source_id)
        return source_id

    def cancel(self, handle: Any) -> None:
        if handle is None or handle not in self._pending:
            return
        self._pending.discard(handle)
        self._glib.source_remove(handle)


class Debouncer:
    """
    Propagates a value only after it has been stable for a quiet period.

    Holds a single pending timer handle: each push cancels and replaces the
    previous one, so at most one trigger is in flight. A value equal to the
    last one that actually fired is suppressed; ``on_repeat`` hears about it.
    """

    _NOTHING = object()

    def __init__(
        self,
        scheduler: Scheduler,
        delay_ms: int,
        callback: Callable[[Any], None],
        on_repeat: Optional[Callable[[Any], None]] = None,
    ):
        self._scheduler = scheduler
        self._delay_ms = delay_ms
        self._callback = callback
        self._on_repeat = on_repeat
        self._handle: Optional[Any] = None
        self._pending_value: Any = self._NOTHING
        self._last_fired: Any = self._NOTHING

    @property
    def is_pending(self) -> bool:
        return self._handle is not None

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def push(self, value: Any) -> None:
        """Replace any pending value with ``value`` and restart the quiet period."""
        self.cancel()
        self._pending_value = value
        self._handle = self._scheduler.timeout_add(self._delay_ms, self._fire)

    def cancel(self) -> None:
        """Drop the pending value, if any, without firing it."""
        if self._handle is not None:
            self._scheduler.cancel(self._handle)
        self._handle = None
        self._pending_value = self._NOTHING

    def reset(self) -> None:
        """Cancel and forget the last fired value so the next push always fires."""
        self.cancel()
        self._last_fired = self._NOTHING

    def _fire(self) -> None:
        value = self._pending_value
        self._handle = None
        self._pending_value = self._NOTHING
        if value is self._NOTHING:
            return
        if value == self._last_fired:
            if self._on_repeat is not None:
                self._on_repeat(value)
            return
        self._last_fired = value
        self._callback(value)
