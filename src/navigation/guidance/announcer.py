# announcer.py
# Sequences everything the guidance engine says.
# AudioFocus arbitrates between speaking and listening; AnnouncementScheduler
# keeps at most one utterance in flight and decides what is queued or dropped.

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, List, Optional

from .errors import SpeechError
from .nav_config import NavConfig
from .providers import SpeechSink

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Audio focus
# ---------------------------------------------------------------------------

class FocusState(Enum):
    IDLE      = "idle"
    SPEAKING  = "speaking"
    LISTENING = "listening"


class AudioFocus:
    """
    Two-way arbiter: the device either speaks or listens, never both.

    Listening always wins. When the microphone takes focus the current
    speaker is told to halt via its preempt callback; when focus returns to
    IDLE every release listener is notified so queued speech can resume.
    """

    def __init__(self) -> None:
        self._state = FocusState.IDLE
        self._preempt: Optional[Callable[[], None]] = None
        self._release_listeners: List[Callable[[], None]] = []

    @property
    def state(self) -> FocusState:
        return self._state

    @property
    def is_listening(self) -> bool:
        return self._state is FocusState.LISTENING

    def on_release(self, listener: Callable[[], None]) -> None:
        self._release_listeners.append(listener)

    def acquire_speaking(self, preempt: Callable[[], None]) -> bool:
        """Take focus for output. Fails only while listening."""
        if self._state is FocusState.LISTENING:
            return False
        self._state = FocusState.SPEAKING
        self._preempt = preempt
        return True

    def release_speaking(self) -> None:
        if self._state is FocusState.SPEAKING:
            self._state = FocusState.IDLE
            self._preempt = None
            self._notify_release()

    def acquire_listening(self) -> None:
        """Take focus for input, silencing any speech in progress."""
        if self._state is FocusState.SPEAKING and self._preempt is not None:
            preempt, self._preempt = self._preempt, None
            self._state = FocusState.LISTENING
            preempt()
        self._state = FocusState.LISTENING

    def release_listening(self) -> None:
        if self._state is FocusState.LISTENING:
            self._state = FocusState.IDLE
            self._notify_release()

    def _notify_release(self) -> None:
        for listener in list(self._release_listeners):
            listener()


# ---------------------------------------------------------------------------
# Announcements
# ---------------------------------------------------------------------------

class Priority(Enum):
    IMMEDIATE = "immediate"   # step changes, arrival, stop: queued, never dropped silently
    PERIODIC  = "periodic"    # reminders: dropped when anything else is going on


@dataclass
class Utterance:
    text: str
    priority: Priority
    token: int = 0
    attempts: int = 0


class AnnouncementScheduler:
    """
    Rate-limits and serializes speech sent to a SpeechSink.

    Usage:
        scheduler = AnnouncementScheduler(sink, AudioFocus(), config)
        scheduler.announce("Turn left onto Main St", Priority.IMMEDIATE)

    Args:
        sink:   Speech output collaborator.
        focus:  Shared AudioFocus; a fresh one is created if omitted.
        config: NavConfig instance (speech_retry_limit).
    """

    def __init__(
        self,
        sink: SpeechSink,
        focus: Optional[AudioFocus] = None,
        config: Optional[NavConfig] = None,
    ) -> None:
        self.sink = sink
        self.focus = focus or AudioFocus()
        self.config = config or NavConfig()
        self._in_flight: Optional[Utterance] = None
        self._pending: Deque[Utterance] = deque()
        self._next_token = 0
        self.spoken: int = 0
        self.dropped: int = 0
        self.focus.on_release(self._drain)

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def is_speaking(self) -> bool:
        return self._in_flight is not None

    @property
    def current(self) -> Optional[str]:
        return self._in_flight.text if self._in_flight else None

    @property
    def pending(self) -> List[str]:
        return [u.text for u in self._pending]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def announce(self, text: str, priority: Priority = Priority.IMMEDIATE) -> bool:
        """
        Request an announcement.

        Returns:
            False if a periodic announcement was dropped, True otherwise
            (spoken now or queued).
        """
        text = (text or "").strip()
        if not text:
            return False

        utterance = Utterance(text=text, priority=priority)

        if priority is Priority.PERIODIC:
            if self._in_flight is not None or self._pending or self.focus.is_listening:
                self.dropped += 1
                logger.debug(f"Periodic announcement dropped: {text!r}")
                return False
            self._speak(utterance)
            return True

        if self._in_flight is not None and self._in_flight.priority is Priority.PERIODIC:
            logger.debug(f"Interrupting reminder {self._in_flight.text!r}")
            self._cancel_in_flight()

        if self._in_flight is not None or self.focus.is_listening:
            self._pending.append(utterance)
            logger.debug(f"Announcement queued ({len(self._pending)} pending): {text!r}")
            return True

        self._speak(utterance)
        return True

    def flush(self) -> None:
        """Drop everything queued and silence the current utterance."""
        if self._pending:
            logger.info(f"Discarding {len(self._pending)} queued announcement(s).")
            self.dropped += len(self._pending)
            self._pending.clear()
        if self._in_flight is not None:
            self._cancel_in_flight()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _speak(self, utterance: Utterance) -> None:
        if not self.focus.acquire_speaking(self._on_preempted):
            self._requeue(utterance)
            return

        self._next_token += 1
        utterance.token = self._next_token
        utterance.attempts += 1
        self._in_flight = utterance
        logger.info(f"Speaking [{utterance.priority.value}]: {utterance.text}")

        token = utterance.token
        try:
            self.sink.speak(utterance.text, lambda error: self._on_done(token, error))
        except SpeechError as e:
            self._on_done(token, e)
        except Exception as e:
            logger.exception(f"Speech sink raised unexpectedly for {utterance.text!r}")
            self._on_done(token, e)

    def _on_done(self, token: int, error: Optional[Exception]) -> None:
        utterance = self._in_flight
        if utterance is None or utterance.token != token:
            return  # cancelled or superseded

        self._in_flight = None
        if error is None:
            self.spoken += 1
        else:
            logger.error(f"Speech failed for {utterance.text!r}: {error}")
            retry = (
                utterance.priority is Priority.IMMEDIATE
                and utterance.attempts <= self.config.speech_retry_limit
            )
            if retry:
                logger.info(f"Retrying announcement {utterance.text!r}")
                self._pending.appendleft(utterance)
            else:
                self.dropped += 1

        # releasing focus drains the queue through the release listener
        self.focus.release_speaking()

    def _cancel_in_flight(self) -> None:
        self._in_flight = None
        self.sink.stop()
        self.focus.release_speaking()

    def _on_preempted(self) -> None:
        """The microphone took focus: halt output, keep immediate speech for later."""
        utterance, self._in_flight = self._in_flight, None
        if utterance is None:
            return
        self.sink.stop()
        if utterance.priority is Priority.IMMEDIATE:
            utterance.attempts -= 1
            self._pending.appendleft(utterance)
        else:
            self.dropped += 1

    def _requeue(self, utterance: Utterance) -> None:
        if utterance.priority is Priority.IMMEDIATE:
            self._pending.appendleft(utterance)
        else:
            self.dropped += 1

    def _drain(self) -> None:
        if self._in_flight is not None or self.focus.is_listening:
            return
        if self._pending:
            self._speak(self._pending.popleft())
