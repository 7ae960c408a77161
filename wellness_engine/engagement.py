"""
Engagement State Module

Owns the user profile and applies the gamification rules:
XP rewards, level derivation, and streak recomputation on every
mood or journal submission.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, date, timedelta
from typing import Optional, List, Dict, Any, Callable, Iterable, FrozenSet, Tuple
from enum import Enum
import logging

from .entries import MoodEntry, JournalEntry, MoodTag, EventLog

logger = logging.getLogger(__name__)


XP_PER_LEVEL = 100
MOOD_XP_REWARD = 10
JOURNAL_XP_REWARD = 15
STREAK_LOOKBACK_DAYS = 30


class OnboardingRequiredError(RuntimeError):
    """Raised when activity is recorded before a profile exists."""


class ResponseStyle(Enum):
    """How the companion phrases its replies."""
    GENTLE = "gentle"
    MOTIVATIONAL = "motivational"
    NEUTRAL = "neutral"


class ConsentAnswer(Enum):
    """Answer to a yes/no onboarding question."""
    YES = "yes"
    NO = "no"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"

    @classmethod
    def parse(cls, value: Any) -> "ConsentAnswer":
        """Accept enum members, values, or onboarding labels ("Prefer not to say")."""
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower().replace(" ", "-")
        try:
            return cls(normalized)
        except ValueError:
            return cls.PREFER_NOT_TO_SAY


class ActivitySource(Enum):
    """Which kind of submission triggered an update."""
    MOOD = "mood"
    JOURNAL = "journal"


class StreakPolicy(Enum):
    """
    How a missing entry for the current day is treated.

    TODAY_PENDING: the day is not over yet, so the run ending yesterday
                   still counts.
    TODAY_BREAKS:  no entry today means the streak is 0.
    """
    TODAY_PENDING = "today_pending"
    TODAY_BREAKS = "today_breaks"


def level_for_xp(xp: int) -> int:
    """Level is a pure function of accumulated XP."""
    return max(0, xp) // XP_PER_LEVEL + 1


def xp_progress(xp: int) -> Tuple[int, int]:
    """
    XP earned inside the current level.

    Returns:
        Tuple of (xp_into_level, xp_per_level)
    """
    return max(0, xp) % XP_PER_LEVEL, XP_PER_LEVEL


def calculate_streak(
    timestamps: Iterable[datetime],
    today: date,
    policy: StreakPolicy = StreakPolicy.TODAY_PENDING,
    max_days: int = STREAK_LOOKBACK_DAYS
) -> int:
    """
    Count consecutive calendar days with at least one entry,
    walking backward from today.

    A gap stops the walk once a run has started. Gaps before the run
    starts are skipped, except that TODAY_BREAKS treats an empty
    today as the end of the streak.
    """
    active_days = {ts.date() for ts in timestamps}
    if not active_days:
        return 0

    if policy == StreakPolicy.TODAY_BREAKS and today not in active_days:
        return 0

    streak = 0
    for offset in range(max_days):
        day = today - timedelta(days=offset)
        if day in active_days:
            streak += 1
        elif streak > 0:
            break

    return streak


@dataclass(frozen=True)
class OnboardingSeed:
    """Answers collected by the onboarding wizard."""
    response_style: ResponseStyle = ResponseStyle.NEUTRAL
    mental_health_history: FrozenSet[str] = field(default_factory=frozenset)
    current_treatment: ConsentAnswer = ConsentAnswer.PREFER_NOT_TO_SAY
    medication: ConsentAnswer = ConsentAnswer.PREFER_NOT_TO_SAY
    crisis_support: ConsentAnswer = ConsentAnswer.NO

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OnboardingSeed":
        style = data.get("response_style") or ResponseStyle.NEUTRAL.value
        if not isinstance(style, ResponseStyle):
            try:
                style = ResponseStyle(str(style).lower())
            except ValueError:
                style = ResponseStyle.NEUTRAL
        return cls(
            response_style=style,
            mental_health_history=frozenset(data.get("mental_health_history") or ()),
            current_treatment=ConsentAnswer.parse(data.get("current_treatment")),
            medication=ConsentAnswer.parse(data.get("medication")),
            crisis_support=ConsentAnswer.parse(data.get("crisis_support", "no")),
        )


@dataclass(frozen=True)
class UserProfile:
    """
    Singleton profile for the local user.

    Level is never stored independently: it is always derived from xp,
    which only grows, so level never regresses.
    """
    xp: int = 0
    streak: int = 0
    current_mood: Optional[MoodTag] = None
    response_style: ResponseStyle = ResponseStyle.NEUTRAL
    mental_health_history: FrozenSet[str] = field(default_factory=frozenset)
    current_treatment: ConsentAnswer = ConsentAnswer.PREFER_NOT_TO_SAY
    medication: ConsentAnswer = ConsentAnswer.PREFER_NOT_TO_SAY
    crisis_support: ConsentAnswer = ConsentAnswer.NO

    @property
    def level(self) -> int:
        return level_for_xp(self.xp)

    @property
    def wants_crisis_support(self) -> bool:
        return self.crisis_support == ConsentAnswer.YES

    @classmethod
    def from_onboarding(cls, seed: OnboardingSeed) -> "UserProfile":
        return cls(
            xp=0,
            streak=0,
            response_style=seed.response_style,
            mental_health_history=seed.mental_health_history,
            current_treatment=seed.current_treatment,
            medication=seed.medication,
            crisis_support=seed.crisis_support,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "xp": self.xp,
            "streak": self.streak,
            "current_mood": self.current_mood.value if self.current_mood else None,
            "response_style": self.response_style.value,
            "mental_health_history": sorted(self.mental_health_history),
            "current_treatment": self.current_treatment.value,
            "medication": self.medication.value,
            "crisis_support": self.crisis_support.value,
        }


@dataclass(frozen=True)
class LevelUpEvent:
    """Notification for the UI layer; not part of engine state."""
    source: ActivitySource
    previous_level: int
    new_level: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source.value,
            "previous_level": self.previous_level,
            "new_level": self.new_level,
            "message": self.message,
        }


LEVEL_UP_MESSAGES: Dict[ActivitySource, str] = {
    ActivitySource.MOOD: "You've reached level {level}! Keep up the great work.",
    ActivitySource.JOURNAL: "You've reached level {level}! Your self-reflection is paying off.",
}


@dataclass(frozen=True)
class Achievement:
    key: str
    label: str
    description: str
    unlocked: bool


def evaluate_achievements(
    profile: UserProfile,
    mood_count: int,
    journal_count: int
) -> List[Achievement]:
    """Badges shown on the dashboard."""
    return [
        Achievement("first_steps", "First Steps", "Started your journey",
                    profile.xp > 0),
        Achievement("mood_master", "Mood Master", "7 mood entries",
                    mood_count >= 7),
        Achievement("thoughtful_writer", "Thoughtful Writer", "3 journal entries",
                    journal_count >= 3),
        Achievement("consistent_tracker", "Consistent Tracker", "5-day streak",
                    profile.streak >= 5),
    ]


class EngagementManager:
    """
    Applies XP, level and streak transitions whenever an entry arrives.

    The manager owns the profile and both logs; callers get immutable
    snapshots back.
    """

    def __init__(
        self,
        profile: Optional[UserProfile] = None,
        mood_log: Optional[EventLog] = None,
        journal_log: Optional[EventLog] = None,
        streak_policy: StreakPolicy = StreakPolicy.TODAY_PENDING,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.profile = profile
        self.mood_log: EventLog = mood_log if mood_log is not None else EventLog()
        self.journal_log: EventLog = journal_log if journal_log is not None else EventLog()
        self.streak_policy = streak_policy
        self._clock = clock
        self._level_up_listeners: List[Callable[[LevelUpEvent], None]] = []

    def register_listener(self, callback: Callable[[LevelUpEvent], None]):
        """Register a callback to be called on level-up."""
        self._level_up_listeners.append(callback)

    def start(self, seed: OnboardingSeed) -> UserProfile:
        """Create the profile at onboarding completion."""
        self.profile = UserProfile.from_onboarding(seed)
        logger.info(f"Profile created with {seed.response_style.value} response style")
        return self.profile

    def require_profile(self) -> UserProfile:
        if self.profile is None:
            raise OnboardingRequiredError("Complete onboarding before logging activity")
        return self.profile

    def record_mood(self, entry: MoodEntry) -> UserProfile:
        """Append a mood entry and award mood XP."""
        profile = self.require_profile()
        self.mood_log.append(entry)

        updated = replace(
            profile,
            xp=profile.xp + MOOD_XP_REWARD,
            current_mood=entry.mood,
            streak=self.current_streak(ActivitySource.MOOD),
        )
        return self._commit(profile, updated, ActivitySource.MOOD)

    def record_journal(self, entry: JournalEntry) -> UserProfile:
        """Append a journal entry and award journal XP."""
        profile = self.require_profile()
        self.journal_log.append(entry)

        updated = replace(
            profile,
            xp=profile.xp + JOURNAL_XP_REWARD,
            streak=self.current_streak(ActivitySource.JOURNAL),
        )
        return self._commit(profile, updated, ActivitySource.JOURNAL)

    def current_streak(
        self,
        source: ActivitySource = ActivitySource.MOOD,
        today: Optional[date] = None
    ) -> int:
        """Read-only streak query over the mood or journal log."""
        log = self.mood_log if source == ActivitySource.MOOD else self.journal_log
        return calculate_streak(
            (entry.timestamp for entry in log),
            today or self._clock().date(),
            self.streak_policy,
        )

    def _commit(
        self,
        previous: UserProfile,
        updated: UserProfile,
        source: ActivitySource
    ) -> UserProfile:
        self.profile = updated

        if updated.level > previous.level:
            event = LevelUpEvent(
                source=source,
                previous_level=previous.level,
                new_level=updated.level,
                message=LEVEL_UP_MESSAGES[source].format(level=updated.level),
            )
            logger.info(f"Level up via {source.value}: {previous.level} -> {updated.level}")
            for callback in self._level_up_listeners:
                try:
                    callback(event)
                except Exception as e:
                    logger.error(f"Level-up listener error: {e}")

        return updated
