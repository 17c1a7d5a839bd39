# stt.py
# Voice input for spoken destinations, backed by the SpeechRecognition package.
# Audio focus is handled by the caller (NavigationSystem.listen_for_destination).

import logging
from typing import Optional

import speech_recognition as sr

from navigation.guidance.nav_config import NavConfig

logger = logging.getLogger(__name__)


class SpeechRecognizerInput:
    """
    VoiceInputProvider that records one phrase and transcribes it.

    Args:
        config:     NavConfig (listen_timeout_s, language).
        recognizer: sr.Recognizer override.
        microphone: Audio source override; sr.Microphone() is opened per call.
    """

    def __init__(self, config: Optional[NavConfig] = None, recognizer=None, microphone=None) -> None:
        self.config = config or NavConfig()
        self.recognizer = recognizer or sr.Recognizer()
        self._microphone = microphone

    def listen(self) -> Optional[str]:
        """
        Record until the speaker pauses and return the transcript.

        Returns:
            The recognized text, or None when nothing usable was heard.
        """
        try:
            source_factory = self._microphone or sr.Microphone()
            with source_factory as source:
                self.recognizer.adjust_for_ambient_noise(source, duration=0.5)
                audio = self.recognizer.listen(source, timeout=self.config.listen_timeout_s)
            text = self.recognizer.recognize_google(audio, language=self.config.language)
        except (OSError, AttributeError) as e:
            # PyAudio missing or no input device
            logger.error(f"Microphone unavailable: {e}")
            return None
        except sr.WaitTimeoutError:
            logger.info("No speech detected.")
            return None
        except sr.UnknownValueError:
            logger.info("Speech was not understood.")
            return None
        except sr.RequestError as e:
            logger.error(f"Speech recognition service error: {e}")
            return None

        text = (text or "").strip()
        logger.info(f"Recognized: {text!r}")
        return text or None
