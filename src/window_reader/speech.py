"""Text-to-speech output using pyttsx3."""

import threading

from . import log
from .errors import SpeechError

logger = log.get_logger()

# pyttsx3 reports words per minute; SAPI5 defaults to 200
DEFAULT_BASE_RATE = 200


def _is_female(voice) -> bool:
    gender = (getattr(voice, "gender", None) or "").lower()
    if gender:
        return gender == "female"
    # SAPI5 voices do not report gender; Zira is the stock female voice
    return "zira" in (getattr(voice, "name", "") or "").lower()


class Speaker:
    """Speaks text with the system speech synthesizer.

    The engine is created on first use. Calls are serialized, so a new
    utterance never starts while another is playing.
    """

    def __init__(self, rate: float = 1.25, volume: int = 100):
        """Initialize the speaker.

        Args:
            rate: Multiplier applied to the engine's default speaking rate.
            volume: Volume from 0 to 100.
        """
        self.rate = rate
        self.volume = volume
        self._engine = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config) -> "Speaker":
        return cls(rate=config.speech_rate, volume=config.speech_volume)

    def _ensure_engine(self):
        if self._engine is not None:
            return self._engine

        import pyttsx3

        engine = pyttsx3.init()
        base_rate = engine.getProperty("rate") or DEFAULT_BASE_RATE
        engine.setProperty("rate", int(base_rate * self.rate))
        engine.setProperty("volume", self.volume / 100.0)

        for voice in engine.getProperty("voices") or []:
            if _is_female(voice):
                engine.setProperty("voice", voice.id)
                logger.debug("voice selected", voice=voice.name)
                break

        self._engine = engine
        return engine

    def speak(self, text: str) -> None:
        """Speak the text and block until it has been spoken.

        Raises:
            SpeechError: If the engine fails.
        """
        if not text or not text.strip():
            return

        logger.info("speaking", chars=len(text))
        with self._lock:
            try:
                engine = self._ensure_engine()
                engine.say(text)
                engine.runAndWait()
            except Exception as e:
                raise SpeechError(f"Speech failed: {e}") from e

    def stop(self) -> None:
        """Interrupt any utterance in progress."""
        if self._engine is not None:
            self._engine.stop()
