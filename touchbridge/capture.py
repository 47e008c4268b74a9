"""Single-shot input capture.

A `CaptureSession` resolves the user's next physical input into an
`EventDescriptor`. It is a plain state machine advanced by `tick()` (called
from the owner's event loop) and by `key_pressed()` for the keyboard fast path;
nothing here blocks or sleeps.

    IDLE -> CAPTURING -> RESOLVED | CANCELLED

`on_complete(descriptor, cancelled)` is called exactly once for every session
that was started.
"""
import enum
import logging
import time
from typing import Callable, List, Optional

import pygame

from touchbridge.core.descriptor import EventDescriptor, keyboard_descriptor
from touchbridge.core.reader import DeviceSource

LOG = logging.getLogger("touchbridge.capture")

POLL_INTERVAL = 0.2  # seconds between device polls
TIMEOUT = 5.0  # seconds before the capture gives up


class CaptureState(enum.Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class CaptureSession:
    def __init__(self, source_factory: Callable[[], List[DeviceSource]], *,
                 poll_interval: float = POLL_INTERVAL, timeout: float = TIMEOUT,
                 cancel_key: int = pygame.K_ESCAPE, focus=None,
                 clock: Callable[[], float] = time.monotonic):
        self._source_factory = source_factory
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.cancel_key = cancel_key
        self._focus = focus  # anything with grab() / release()
        self._clock = clock

        self.state = CaptureState.IDLE
        self.is_new_binding = False
        self.result: Optional[EventDescriptor] = None
        self._on_complete = None
        self._sources: List[DeviceSource] = []
        self._deadline: Optional[float] = None
        self._last_poll: Optional[float] = None
        self._focus_held = False

    @property
    def capturing(self) -> bool:
        return self.state is CaptureState.CAPTURING

    def start(self, on_complete: Callable[[Optional[EventDescriptor], bool], None],
              is_new_binding: bool = False):
        if self.capturing:
            raise RuntimeError("a capture is already in progress")
        candidates = list(self._source_factory())

        self.state = CaptureState.CAPTURING
        self.is_new_binding = is_new_binding
        self.result = None
        self._on_complete = on_complete

        if self._focus is not None:
            self._focus.grab()
            self._focus_held = True

        self._sources = []
        for source in candidates:
            try:
                source.start()
            except Exception:
                LOG.exception("failed to start device source %r; skipping it", source)
                continue
            self._sources.append(source)

        now = self._clock()
        self._deadline = now + self.timeout
        self._last_poll = now
        LOG.debug("capture started (new=%s, %d source(s))", is_new_binding, len(self._sources))

    def tick(self, now: Optional[float] = None):
        """Advance the session to `now`: time out, or poll when an interval has elapsed."""
        if not self.capturing:
            return
        if now is None:
            now = self._clock()
        if now >= self._deadline:
            LOG.info("capture timed out after %.1fs", self.timeout)
            self._finish(None, True)
            return
        if now - self._last_poll < self.poll_interval:
            return
        self._last_poll = now
        for source in self._sources:
            try:
                desc = source.get_next_input()
            except Exception:
                LOG.exception("error polling device source %r", source)
                continue
            if desc is not None and desc.is_bound:
                self._finish(desc, False)
                return

    def key_pressed(self, key_code: int) -> bool:
        """Handle a key press while capturing. Returns True when the key was consumed."""
        if not self.capturing:
            return False
        if key_code == self.cancel_key:
            self.cancel()
        else:
            self._finish(keyboard_descriptor(key_code), False)
        return True

    def cancel(self):
        if self.capturing:
            self._finish(None, True)

    def _finish(self, desc: Optional[EventDescriptor], cancelled: bool):
        self.state = CaptureState.CANCELLED if cancelled else CaptureState.RESOLVED
        self.result = desc
        self._cleanup()
        callback, self._on_complete = self._on_complete, None
        if cancelled:
            LOG.info("capture cancelled")
        else:
            LOG.info("captured %s", desc.serialize())
        if callback is None:
            return
        try:
            callback(desc, cancelled)
        except Exception:
            LOG.exception("capture completion callback failed")

    def _cleanup(self):
        self._deadline = None
        self._last_poll = None
        sources, self._sources = self._sources, []
        for source in sources:
            try:
                source.stop()
            except Exception:
                LOG.exception("failed to stop device source %r", source)
        if self._focus_held:
            self._focus_held = False
            self._focus.release()
