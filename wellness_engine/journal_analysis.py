"""
Journal Analysis Module

Stand-in for a future real analyzer. Analysis runs as a deferred,
non-blocking task on a background timer; a newer submission cancels the
pending one and only the latest submission's result is ever applied.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Callable, Tuple
import threading
import logging

from .config import JOURNAL_ANALYSIS_DELAY
from .triage import CrisisClassifier, Topic

logger = logging.getLogger(__name__)


DEFAULT_EMOTIONS: Tuple[str, ...] = ("hopeful", "reflective", "grateful")

TOPIC_TO_MOOD: Dict[Topic, str] = {
    Topic.ANXIETY: "anxious",
    Topic.DEPRESSION: "sad",
    Topic.SLEEP: "neutral",
    Topic.STRESS: "stressed",
}

DEFAULT_INSIGHT = (
    "Your writing shows a beautiful balance of self-reflection and gratitude. "
    "The themes of growth and acceptance are strong indicators of emotional resilience."
)
DIFFICULT_INSIGHT = (
    "Thank you for putting this into words. Naming what weighs on you is an "
    "important step, and noticing it is already a form of care."
)


@dataclass(frozen=True)
class JournalAnalysis:
    """Derived mood, emotion tags and insight for one journal entry."""
    mood: str
    emotions: Tuple[str, ...] = field(default_factory=tuple)
    insight: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mood": self.mood,
            "emotions": list(self.emotions),
            "insight": self.insight,
        }


_topic_classifier = CrisisClassifier()


def analyze_journal_text(text: str) -> JournalAnalysis:
    """Keyword-level placeholder analysis."""
    topic = _topic_classifier.detect_topic(text)
    if topic is None:
        return JournalAnalysis(mood="calm", emotions=DEFAULT_EMOTIONS, insight=DEFAULT_INSIGHT)

    return JournalAnalysis(
        mood=TOPIC_TO_MOOD[topic],
        emotions=("reflective", topic.value),
        insight=DIFFICULT_INSIGHT,
    )


CompletionCallback = Callable[[int, JournalAnalysis], None]


class JournalAnalysisScheduler:
    """
    Last-submission-wins deferred analysis.

    Each submission gets a monotonically increasing token. When a timer
    fires it only delivers its result if its token is still the latest.

    Completions run while holding `lock`. Pass the owner's lock so a
    completion is serialized with the owner's other state changes.
    """

    def __init__(
        self,
        delay: float = JOURNAL_ANALYSIS_DELAY,
        analyzer: Callable[[str], JournalAnalysis] = analyze_journal_text,
        lock: Optional[threading.RLock] = None
    ):
        self.delay = delay
        self.analyzer = analyzer
        self._generation = 0
        self._timer: Optional[threading.Timer] = None
        self._lock = lock if lock is not None else threading.RLock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def latest_token(self) -> int:
        return self._generation

    def submit(self, text: str, on_complete: CompletionCallback) -> int:
        """
        Schedule analysis of text, superseding any pending analysis.

        Returns:
            The token identifying this submission
        """
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            token = self._generation

            if self.delay <= 0:
                self._run(token, text, on_complete)
                return token

            timer = threading.Timer(self.delay, self._run, args=(token, text, on_complete))
            timer.daemon = True
            self._timer = timer
            timer.start()
            return token

    def cancel(self):
        """Drop the pending analysis, if any."""
        with self._lock:
            self._cancel_timer()
            # Bump so an already-firing timer cannot apply its result
            self._generation += 1

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _run(self, token: int, text: str, on_complete: CompletionCallback):
        try:
            analysis = self.analyzer(text)
        except Exception as e:
            logger.error(f"Journal analysis failed: {e}")
            analysis = JournalAnalysis(mood="neutral")

        with self._lock:
            if token != self._generation:
                logger.info(f"Discarding superseded journal analysis #{token}")
                return
            self._timer = None
            on_complete(token, analysis)
