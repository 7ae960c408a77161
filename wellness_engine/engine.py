"""
Wellness Engine Coordinator

The single integration point the UI layer talks to. It owns the profile
and both logs, and wires together:
1. Engagement state (XP, levels, streaks)
2. Mood analytics (stats, patterns, insights)
3. Crisis triage + chat session
4. Deferred journal analysis
5. Persistence port

The UI holds no independent copy of this state; it reads snapshots and
sends commands.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any, Callable, Tuple, Union
from enum import Enum
import logging
import random
import threading
import uuid

from .config import JOURNAL_ANALYSIS_DELAY, STREAK_POLICY
from .entries import (
    MoodEntry,
    JournalEntry,
    MoodTag,
    EventLog,
    validate_mood,
    validate_journal_text,
)
from .engagement import (
    EngagementManager,
    UserProfile,
    OnboardingSeed,
    LevelUpEvent,
    StreakPolicy,
    Achievement,
    evaluate_achievements,
    xp_progress,
)
from .analytics import MoodAnalyzer, AnalysisReport, Timeframe
from .conversation import ChatSession, CrisisAlert, Message
from .responses import ResponseGenerator, greeting
from .journal_analysis import JournalAnalysisScheduler, JournalAnalysis
from .storage import StoragePort, JsonFileStorage, PersistenceError

logger = logging.getLogger(__name__)


class NotificationKind(Enum):
    """Notifications the engine pushes to the UI layer."""
    LEVEL_UP = "level_up"
    CRISIS_DETECTED = "crisis_detected"
    WARNING = "warning"
    JOURNAL_SAVED = "journal_saved"


@dataclass(frozen=True)
class EngineWarning:
    """Non-blocking problem surfaced to the user (e.g. storage failure)."""
    operation: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


def _parse_streak_policy(value: str) -> StreakPolicy:
    try:
        return StreakPolicy(value)
    except ValueError:
        logger.warning(f"Unknown streak policy {value!r}, using today_pending")
        return StreakPolicy.TODAY_PENDING


class WellnessEngine:
    """
    Embedded analytics & engagement engine for a single local user.

    Commands: complete_onboarding, submit_mood, submit_journal,
    request_analysis, send_chat_message.
    """

    def __init__(
        self,
        storage: Optional[StoragePort] = None,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
        analysis_delay: float = JOURNAL_ANALYSIS_DELAY,
        streak_policy: Optional[StreakPolicy] = None
    ):
        self.storage = storage if storage is not None else JsonFileStorage()
        self._clock = clock
        # Guards profile, logs and chat; shared with the journal timer thread
        self._lock = threading.RLock()
        self.warnings: List[EngineWarning] = []
        self._listeners: Dict[NotificationKind, List[Callable[[Any], None]]] = {
            kind: [] for kind in NotificationKind
        }

        profile, moods, journals = self._load()

        self.engagement = EngagementManager(
            profile=profile,
            mood_log=EventLog(moods),
            journal_log=EventLog(journals),
            streak_policy=streak_policy or _parse_streak_policy(STREAK_POLICY),
            clock=clock,
        )
        self.engagement.register_listener(self._on_level_up)

        self.analyzer = MoodAnalyzer(clock=clock)
        self.responder = ResponseGenerator(rng=rng)
        self.journal_scheduler = JournalAnalysisScheduler(delay=analysis_delay, lock=self._lock)
        self._chat: Optional[ChatSession] = None

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def register_listener(self, kind: NotificationKind, callback: Callable[[Any], None]):
        """Register a callback for one kind of notification."""
        self._listeners[kind].append(callback)

    def _notify(self, kind: NotificationKind, payload: Any):
        for callback in self._listeners[kind]:
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"{kind.value} listener error: {e}")

    def _warn(self, operation: str, error: Exception):
        logger.error(f"Persistence error during {operation}: {error}")
        warning = EngineWarning(
            operation=operation,
            message="There was an issue with your saved data. Your changes are kept for this session.",
            timestamp=self._clock(),
        )
        self.warnings.append(warning)
        self._notify(NotificationKind.WARNING, warning)

    def _on_level_up(self, event: LevelUpEvent):
        self._notify(NotificationKind.LEVEL_UP, event)

    def _on_crisis(self, alert: CrisisAlert):
        self._notify(NotificationKind.CRISIS_DETECTED, alert)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> Tuple[Optional[UserProfile], List[MoodEntry], List[JournalEntry]]:
        """Load each document independently; failures fall back to defaults."""
        profile: Optional[UserProfile] = None
        moods: List[MoodEntry] = []
        journals: List[JournalEntry] = []

        try:
            profile = self.storage.load_profile()
        except PersistenceError as e:
            self._warn("load_profile", e)
        try:
            moods = self.storage.load_mood_log()
        except PersistenceError as e:
            self._warn("load_mood_log", e)
        try:
            journals = self.storage.load_journal_log()
        except PersistenceError as e:
            self._warn("load_journal_log", e)

        logger.info(
            f"Loaded {'existing' if profile else 'no'} profile, "
            f"{len(moods)} mood entries, {len(journals)} journal entries"
        )
        return profile, moods, journals

    def _flush(self, *documents: str):
        """Ask the port to save; failures become warnings, never crashes."""
        writers = {
            "profile": lambda: self.storage.save_profile(self.engagement.profile),
            "moods": lambda: self.storage.save_mood_log(list(self.engagement.mood_log)),
            "journals": lambda: self.storage.save_journal_log(list(self.engagement.journal_log)),
        }
        for name in documents:
            if name == "profile" and self.engagement.profile is None:
                continue
            try:
                writers[name]()
            except PersistenceError as e:
                self._warn(f"save_{name}", e)

    # ------------------------------------------------------------------
    # Read snapshots
    # ------------------------------------------------------------------

    @property
    def profile(self) -> Optional[UserProfile]:
        return self.engagement.profile

    @property
    def needs_onboarding(self) -> bool:
        return self.engagement.profile is None

    @property
    def mood_log(self) -> Tuple[MoodEntry, ...]:
        return self.engagement.mood_log.snapshot()

    @property
    def journal_log(self) -> Tuple[JournalEntry, ...]:
        return self.engagement.journal_log.snapshot()

    @property
    def journal_analysis_pending(self) -> bool:
        return self.journal_scheduler.pending

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def complete_onboarding(self, seed: Union[OnboardingSeed, Dict[str, Any]]) -> UserProfile:
        """Create the profile from onboarding answers (once)."""
        with self._lock:
            if self.engagement.profile is not None:
                logger.warning("Onboarding already completed; keeping existing profile")
                return self.engagement.profile

            if isinstance(seed, dict):
                seed = OnboardingSeed.from_dict(seed)

            profile = self.engagement.start(seed)
            self._chat = None
            self._flush("profile")
            return profile

    def submit_mood(self, tag: Union[MoodTag, str], intensity: int) -> UserProfile:
        """
        Record a mood check-in (+10 XP).

        Raises:
            InvalidEntryError: unknown tag or intensity outside 1-10
            OnboardingRequiredError: no profile yet
        """
        mood, intensity = validate_mood(tag, intensity)

        with self._lock:
            entry = MoodEntry(mood=mood, intensity=intensity, timestamp=self._clock())
            profile = self.engagement.record_mood(entry)
            self._flush("profile", "moods")
            return profile

    def submit_journal(self, text: str) -> int:
        """
        Validate and schedule a journal entry for analysis (+15 XP on save).

        The entry is created when its analysis completes. A newer
        submission supersedes a pending one.

        Returns:
            Submission token

        Raises:
            InvalidEntryError: text shorter than the minimum length
            OnboardingRequiredError: no profile yet
        """
        content = validate_journal_text(text)

        with self._lock:
            self.engagement.require_profile()
            return self.journal_scheduler.submit(content, self._make_journal_completion(content))

    def _make_journal_completion(self, content: str) -> Callable[[int, JournalAnalysis], None]:
        # Called by the scheduler while it holds self._lock
        def complete(token: int, analysis: JournalAnalysis):
            entry = JournalEntry(
                id=str(uuid.uuid4()),
                content=content,
                timestamp=self._clock(),
                mood=analysis.mood,
                emotions=analysis.emotions,
                ai_insight=analysis.insight,
            )
            self.engagement.record_journal(entry)
            self._flush("profile", "journals")
            logger.info(f"Journal entry saved (submission #{token})")
            self._notify(NotificationKind.JOURNAL_SAVED, entry)
        return complete

    def cancel_journal_analysis(self):
        self.journal_scheduler.cancel()

    def request_analysis(self, timeframe: Union[Timeframe, str] = Timeframe.MONTH) -> AnalysisReport:
        """Stats, patterns and insights for a timeframe."""
        if not isinstance(timeframe, Timeframe):
            timeframe = Timeframe(str(timeframe).lower())
        with self._lock:
            return self.analyzer.analyze(self.mood_log, self.journal_log, timeframe)

    @property
    def chat_session(self) -> ChatSession:
        """Active conversation, created on first use with the profile's style."""
        with self._lock:
            if self._chat is None:
                profile = self.engagement.profile
                self._chat = ChatSession(
                    style=profile.response_style if profile else UserProfile().response_style,
                    crisis_support_opt_in=profile.wants_crisis_support if profile else False,
                    generator=self.responder,
                    clock=self._clock,
                )
                self._chat.register_crisis_listener(self._on_crisis)
            return self._chat

    def send_chat_message(self, text: str) -> Optional[Message]:
        """Reply to one chat turn. Returns None for blank input."""
        with self._lock:
            return self.chat_session.send(text)

    def reset_chat(self):
        """Drop the current conversation; the next message starts a new one."""
        with self._lock:
            self._chat = None

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def achievements(self) -> List[Achievement]:
        with self._lock:
            profile = self.engagement.profile or UserProfile()
            return evaluate_achievements(
                profile,
                len(self.engagement.mood_log),
                len(self.engagement.journal_log),
            )

    def overview(self) -> Dict[str, Any]:
        """Snapshot for the dashboard header and today's activity card."""
        with self._lock:
            profile = self.engagement.profile
            if profile is None:
                return {"needs_onboarding": True}

            into_level, per_level = xp_progress(profile.xp)
            today = self.analyzer.today(self.mood_log, self.journal_log)
            return {
                "needs_onboarding": False,
                "greeting": greeting(profile.response_style, self._clock()),
                "profile": profile.to_dict(),
                "xp_into_level": into_level,
                "xp_per_level": per_level,
                "today": today.to_dict(),
                "achievements": [
                    {"key": a.key, "label": a.label, "description": a.description, "unlocked": a.unlocked}
                    for a in self.achievements()
                ],
            }

    def close(self):
        """Cancel pending background work."""
        self.journal_scheduler.cancel()
