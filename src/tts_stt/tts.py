# tts.py
# Speech output for navigation guidance.
# Pyttsx3SpeechSink runs pyttsx3 in external-loop mode so utterance
# completion is reported on the caller's thread; pump() must be called
# regularly (register it with the TimerQueue).

import logging
from typing import Dict, Optional

import pyttsx3

from navigation.guidance.errors import SpeechError
from navigation.guidance.nav_config import NavConfig
from navigation.guidance.providers import SpeechCallback

logger = logging.getLogger(__name__)

PREFERRED_VOICES = ["Samantha", "Victoria", "Ava", "Moira", "Karen", "Tessa", "Kathy"]


def init_tts(config: Optional[NavConfig] = None):
    """Create a pyttsx3 engine with the configured rate, volume and a clear voice if one exists."""
    config = config or NavConfig()
    try:
        engine = pyttsx3.init()
    except (RuntimeError, OSError, ImportError) as e:
        raise SpeechError(f"Text-to-speech engine unavailable: {e}") from e

    engine.setProperty("rate", config.tts_rate)
    engine.setProperty("volume", config.tts_volume)

    for v in engine.getProperty("voices") or []:
        if any(p.lower() in (v.name or "").lower() for p in PREFERRED_VOICES):
            engine.setProperty("voice", v.id)
            break

    return engine


class Pyttsx3SpeechSink:
    """
    SpeechSink backed by pyttsx3.

    Usage:
        sink = Pyttsx3SpeechSink(config)
        timers.call_every(0.1, sink.pump, name="tts-pump")

    Args:
        config: NavConfig (rate, volume).
        engine: Pre-built pyttsx3 engine; init_tts(config) if omitted.
    """

    def __init__(self, config: Optional[NavConfig] = None, engine=None) -> None:
        self.config = config or NavConfig()
        self.engine = engine if engine is not None else init_tts(self.config)
        self._callbacks: Dict[str, SpeechCallback] = {}
        self._counter = 0
        self._loop_started = False

        self.engine.connect("finished-utterance", self._on_finished)
        self.engine.connect("error", self._on_error)

    # ------------------------------------------------------------------
    # SpeechSink
    # ------------------------------------------------------------------

    def speak(self, text: str, on_done: SpeechCallback) -> None:
        self._counter += 1
        name = f"utterance-{self._counter}"
        self._callbacks[name] = on_done
        try:
            self._ensure_loop()
            self.engine.say(text, name)
        except RuntimeError as e:
            self._callbacks.pop(name, None)
            raise SpeechError(str(e)) from e

    def stop(self) -> None:
        # cancelled utterances are not reported back
        self._callbacks.clear()
        self.engine.stop()

    # ------------------------------------------------------------------
    # Loop integration
    # ------------------------------------------------------------------

    def pump(self) -> None:
        """Let the engine make progress; call every ~100 ms."""
        if self._loop_started:
            self.engine.iterate()

    def close(self) -> None:
        if self._loop_started:
            self.engine.endLoop()
            self._loop_started = False

    def _ensure_loop(self) -> None:
        if not self._loop_started:
            self.engine.startLoop(False)
            self._loop_started = True

    # ------------------------------------------------------------------
    # pyttsx3 callbacks
    # ------------------------------------------------------------------

    def _on_finished(self, name: str, completed: bool) -> None:
        callback = self._callbacks.pop(name, None)
        if callback is None:
            return
        callback(None if completed else SpeechError(f"{name} did not complete"))

    def _on_error(self, name: str, exception: Exception) -> None:
        callback = self._callbacks.pop(name, None)
        if callback is None:
            logger.error(f"TTS error outside a tracked utterance: {exception}")
            return
        callback(SpeechError(str(exception)))


class ConsoleSpeechSink:
    """SpeechSink that prints instead of speaking; finishes immediately."""

    def __init__(self, prefix: str = "[TTS]") -> None:
        self.prefix = prefix

    def speak(self, text: str, on_done: SpeechCallback) -> None:
        print(self.prefix, text)
        on_done(None)

    def stop(self) -> None:
        pass
