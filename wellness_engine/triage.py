"""
Crisis Triage Module

Keyword-based classification of free text:
1. Crisis detection (case-insensitive substring match, high recall)
2. Topic routing for non-crisis messages (anxiety, depression, sleep, stress)

No ML model and no network calls. Keywords match anywhere in the text,
including inside longer words.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Tuple
from enum import Enum
import re
import logging

logger = logging.getLogger(__name__)


CRISIS_KEYWORDS: Tuple[str, ...] = (
    "suicide", "kill myself", "end my life", "hurt myself", "self-harm",
    "cutting", "overdose", "pills", "die", "death", "hopeless", "worthless",
)


class Topic(Enum):
    """Conversation topics with dedicated responses."""
    ANXIETY = "anxiety"
    DEPRESSION = "depression"
    SLEEP = "sleep"
    STRESS = "stress"


# Checked in this order; first matching group wins
TOPIC_KEYWORDS: List[Tuple[Topic, Tuple[str, ...]]] = [
    (Topic.ANXIETY, ("anxious", "anxiety", "worried")),
    (Topic.DEPRESSION, ("depressed", "depression", "sad", "down")),
    (Topic.SLEEP, ("sleep", "insomnia", "tired")),
    (Topic.STRESS, ("stress", "overwhelmed", "pressure")),
]


@dataclass(frozen=True)
class TriageResult:
    """Result of classifying one message."""
    is_crisis: bool
    matched_keywords: Tuple[str, ...] = field(default_factory=tuple)
    topic: Optional[Topic] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_crisis": self.is_crisis,
            "matched_keywords": list(self.matched_keywords),
            "topic": self.topic.value if self.topic else None,
        }


class CrisisClassifier:
    """
    Fast, deterministic keyword classifier.
    """

    def __init__(
        self,
        crisis_keywords: Tuple[str, ...] = CRISIS_KEYWORDS,
        topic_keywords: Optional[List[Tuple[Topic, Tuple[str, ...]]]] = None
    ):
        self.crisis_keywords = crisis_keywords
        self.topic_keywords = topic_keywords or TOPIC_KEYWORDS
        self._compile_patterns()

    def _compile_patterns(self):
        """Pre-compile substring patterns (escaped, case-insensitive)."""
        self._crisis_compiled: List[Tuple[str, re.Pattern]] = [
            (keyword, re.compile(re.escape(keyword), re.IGNORECASE))
            for keyword in self.crisis_keywords
        ]
        self._topic_compiled: List[Tuple[Topic, List[re.Pattern]]] = [
            (topic, [re.compile(re.escape(k), re.IGNORECASE) for k in keywords])
            for topic, keywords in self.topic_keywords
        ]

    def is_crisis(self, text: Any) -> bool:
        return self.classify(text).is_crisis

    def classify(self, text: Any) -> TriageResult:
        """
        Classify a message. Never raises: empty or non-text input
        is simply not a crisis.
        """
        if not isinstance(text, str) or not text.strip():
            return TriageResult(is_crisis=False)

        matched = tuple(
            keyword for keyword, pattern in self._crisis_compiled
            if pattern.search(text)
        )
        if matched:
            logger.warning(f"Crisis keywords detected: {', '.join(matched)}")
            return TriageResult(is_crisis=True, matched_keywords=matched)

        return TriageResult(is_crisis=False, topic=self.detect_topic(text))

    def detect_topic(self, text: Any) -> Optional[Topic]:
        """First topic group with any matching keyword, in router order."""
        if not isinstance(text, str):
            return None
        for topic, patterns in self._topic_compiled:
            if any(pattern.search(text) for pattern in patterns):
                return topic
        return None
