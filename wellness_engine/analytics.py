"""
Statistics & Pattern Analysis Module

Windows the mood/journal logs by timeframe, computes aggregate mood
statistics, detects behavioral patterns, and turns them into
human-readable insights.
"""

from dataclasses import dataclass, field
from datetime import datetime, date, timedelta
from typing import List, Dict, Optional, Any, Sequence, Tuple, TypeVar, Callable
from collections import Counter
from enum import Enum
import calendar

from .entries import MoodEntry, JournalEntry


class Timeframe(Enum):
    """Named filter window applied before statistics are computed."""
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class PatternImpact(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class InsightType(Enum):
    IMPROVEMENT = "improvement"
    CONCERN = "concern"
    ACHIEVEMENT = "achievement"


# Trend windows (entries, not days)
TREND_WINDOW = 7

# Weekend vs weekday
WEEKEND_DAYS = (5, 6)  # Saturday, Sunday
WEEKEND_MIN_ENTRIES = 2          # each partition needs MORE than this
WEEKEND_MIN_DIFFERENCE = 1.0
WEEKEND_CONFIDENCE_PER_POINT = 20
WEEKEND_MAX_CONFIDENCE = 85

# Stability / volatility
STABLE_MAX_VARIANCE = 2.0
STABLE_MIN_ENTRIES = 7           # needs MORE than this
STABLE_CONFIDENCE = 75
VOLATILE_MIN_VARIANCE = 4.0
VOLATILE_CONFIDENCE = 70

# Journaling correlation
JOURNAL_CORRELATION_MIN_JOURNALS = 5     # needs MORE than this
JOURNAL_CORRELATION_MIN_MOODS = 3        # needs MORE than this
JOURNAL_CORRELATION_MIN_LIFT = 0.5
JOURNAL_CORRELATION_CONFIDENCE = 65

# Insights
TREND_ALERT_THRESHOLD = 1.0
LOW_LOGGING_THRESHOLD = 7        # month only
LOW_JOURNALING_THRESHOLD = 3     # month only
JOURNAL_HABIT_THRESHOLD = 10
HIGH_AVERAGE_THRESHOLD = 7.0
LOW_AVERAGE_THRESHOLD = 4.0

# Stability label bands shown with the overview
STABILITY_HIGH_BELOW = 2.0
STABILITY_MEDIUM_BELOW = 4.0


EntryT = TypeVar("EntryT", MoodEntry, JournalEntry)


def subtract_one_month(moment: datetime) -> datetime:
    """
    Same wall-clock time one calendar month earlier.
    The day is clamped to the length of the target month (Mar 31 -> Feb 28/29).
    """
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def timeframe_cutoff(timeframe: Timeframe, now: datetime) -> Optional[datetime]:
    """Earliest timestamp included in the window, or None for ALL."""
    if timeframe == Timeframe.WEEK:
        return now - timedelta(days=7)
    if timeframe == Timeframe.MONTH:
        return subtract_one_month(now)
    return None


def filter_by_timeframe(
    log: Sequence[EntryT],
    timeframe: Timeframe,
    now: Optional[datetime] = None
) -> Tuple[EntryT, ...]:
    """Entries with timestamp >= cutoff. Always returns an immutable tuple."""
    cutoff = timeframe_cutoff(timeframe, now or datetime.now())
    if cutoff is None:
        return tuple(log)
    return tuple(entry for entry in log if entry.timestamp >= cutoff)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


@dataclass(frozen=True)
class MoodStats:
    """Aggregate statistics over a (filtered) mood log."""
    average: float
    trend: float       # mean(last 7) - mean(previous 7)
    variance: float    # population variance
    most_common: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average": round(self.average, 3),
            "trend": round(self.trend, 3),
            "variance": round(self.variance, 3),
            "most_common": self.most_common,
        }


EMPTY_STATS = MoodStats(average=0.0, trend=0.0, variance=0.0, most_common="none")


def compute_mood_stats(moods: Sequence[MoodEntry]) -> MoodStats:
    """
    Compute average, trend, variance and most common mood.

    Formula:
    trend = mean(last 7 entries) - mean(the 7 entries before those)
    An empty window uses the overall average, so fewer than 8 entries
    always yields trend 0.
    variance = Σ(x - x̄)² / N

    Ties for most common mood go to the tag that appears first in the log.
    """
    if not moods:
        return EMPTY_STATS

    intensities = [m.intensity for m in moods]
    average = _mean(intensities)

    recent = intensities[-TREND_WINDOW:]
    previous = intensities[-2 * TREND_WINDOW:-TREND_WINDOW]
    recent_avg = _mean(recent) if recent else average
    previous_avg = _mean(previous) if previous else average
    trend = recent_avg - previous_avg

    variance = sum((x - average) ** 2 for x in intensities) / len(intensities)

    # Counter keeps first-seen order and max() returns the first maximum
    counts = Counter(m.mood.value for m in moods)
    most_common = max(counts.items(), key=lambda item: item[1])[0]

    return MoodStats(
        average=average,
        trend=trend,
        variance=variance,
        most_common=most_common,
    )


def stability_label(variance: float) -> str:
    """Map variance to the High / Medium / Low stability label."""
    if variance < STABILITY_HIGH_BELOW:
        return "High"
    if variance < STABILITY_MEDIUM_BELOW:
        return "Medium"
    return "Low"


@dataclass(frozen=True)
class Pattern:
    """A heuristically detected correlation in mood/journal history."""
    type: str
    description: str
    confidence: float  # 0 - 100
    impact: PatternImpact

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "confidence": round(self.confidence, 1),
            "impact": self.impact.value,
        }


@dataclass(frozen=True)
class Insight:
    """A human-readable observation derived from the statistics."""
    category: str
    message: str
    type: InsightType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "message": self.message,
            "type": self.type.value,
        }


def _weekend_pattern(moods: Sequence[MoodEntry]) -> Optional[Pattern]:
    weekend = [m.intensity for m in moods if m.timestamp.weekday() in WEEKEND_DAYS]
    weekday = [m.intensity for m in moods if m.timestamp.weekday() not in WEEKEND_DAYS]

    if len(weekend) <= WEEKEND_MIN_ENTRIES or len(weekday) <= WEEKEND_MIN_ENTRIES:
        return None

    difference = _mean(weekend) - _mean(weekday)
    if abs(difference) <= WEEKEND_MIN_DIFFERENCE:
        return None

    return Pattern(
        type="Weekend Pattern",
        description=(
            "You tend to feel better on weekends" if difference > 0
            else "You tend to feel better on weekdays"
        ),
        confidence=min(abs(difference) * WEEKEND_CONFIDENCE_PER_POINT, WEEKEND_MAX_CONFIDENCE),
        impact=PatternImpact.POSITIVE if difference > 0 else PatternImpact.NEGATIVE,
    )


def _stability_pattern(moods: Sequence[MoodEntry], stats: MoodStats) -> Optional[Pattern]:
    if stats.variance < STABLE_MAX_VARIANCE and len(moods) > STABLE_MIN_ENTRIES:
        return Pattern(
            type="Stability Pattern",
            description="Your mood has been relatively stable",
            confidence=STABLE_CONFIDENCE,
            impact=PatternImpact.POSITIVE,
        )
    if stats.variance > VOLATILE_MIN_VARIANCE:
        return Pattern(
            type="Volatility Pattern",
            description="Your mood shows significant variations",
            confidence=VOLATILE_CONFIDENCE,
            impact=PatternImpact.NEUTRAL,
        )
    return None


def _journaling_pattern(
    moods: Sequence[MoodEntry],
    journals: Sequence[JournalEntry],
    stats: MoodStats
) -> Optional[Pattern]:
    if len(journals) <= JOURNAL_CORRELATION_MIN_JOURNALS:
        return None

    journal_days = {j.timestamp.date() for j in journals}
    on_journal_days = [m.intensity for m in moods if m.timestamp.date() in journal_days]

    if len(on_journal_days) <= JOURNAL_CORRELATION_MIN_MOODS:
        return None

    if _mean(on_journal_days) > stats.average + JOURNAL_CORRELATION_MIN_LIFT:
        return Pattern(
            type="Journaling Correlation",
            description="You tend to feel better on days you journal",
            confidence=JOURNAL_CORRELATION_CONFIDENCE,
            impact=PatternImpact.POSITIVE,
        )
    return None


def detect_patterns(
    moods: Sequence[MoodEntry],
    journals: Sequence[JournalEntry],
    stats: MoodStats
) -> List[Pattern]:
    """
    Run every pattern heuristic independently.
    Order: weekend, stability/volatility, journaling correlation.
    """
    candidates = [
        _weekend_pattern(moods),
        _stability_pattern(moods, stats),
        _journaling_pattern(moods, journals, stats),
    ]
    return [p for p in candidates if p is not None]


def generate_insights(
    stats: MoodStats,
    moods: Sequence[MoodEntry],
    journals: Sequence[JournalEntry],
    timeframe: Timeframe
) -> List[Insight]:
    """Evaluate each insight rule independently, in a fixed order."""
    insights: List[Insight] = []

    # Trend
    if stats.trend > TREND_ALERT_THRESHOLD:
        insights.append(Insight(
            category="Progress",
            message="Your mood has been trending upward recently - great progress!",
            type=InsightType.ACHIEVEMENT,
        ))
    elif stats.trend < -TREND_ALERT_THRESHOLD:
        insights.append(Insight(
            category="Attention Needed",
            message="Your mood has been declining lately. Consider reaching out for support.",
            type=InsightType.CONCERN,
        ))

    # Logging frequency
    if timeframe == Timeframe.MONTH and len(moods) < LOW_LOGGING_THRESHOLD:
        insights.append(Insight(
            category="Tracking",
            message="Try to log your mood more frequently for better insights.",
            type=InsightType.IMPROVEMENT,
        ))

    # Journaling
    if timeframe == Timeframe.MONTH and len(journals) < LOW_JOURNALING_THRESHOLD:
        insights.append(Insight(
            category="Self-Reflection",
            message="Regular journaling can help improve self-awareness and mood.",
            type=InsightType.IMPROVEMENT,
        ))
    elif len(journals) > JOURNAL_HABIT_THRESHOLD:
        insights.append(Insight(
            category="Self-Care",
            message="Excellent job maintaining a regular journaling practice!",
            type=InsightType.ACHIEVEMENT,
        ))

    # Mood range
    if stats.average > HIGH_AVERAGE_THRESHOLD:
        insights.append(Insight(
            category="Wellbeing",
            message="You're maintaining a positive mood range - keep it up!",
            type=InsightType.ACHIEVEMENT,
        ))
    elif stats.average < LOW_AVERAGE_THRESHOLD:
        insights.append(Insight(
            category="Support",
            message="Your average mood is quite low. Consider professional support.",
            type=InsightType.CONCERN,
        ))

    return insights


@dataclass(frozen=True)
class DailySummary:
    """Today's activity at a glance."""
    day: date
    mood_entries: int
    average_mood: float
    journal_entries: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "mood_entries": self.mood_entries,
            "average_mood": round(self.average_mood, 1),
            "journal_entries": self.journal_entries,
        }


def daily_summary(
    moods: Sequence[MoodEntry],
    journals: Sequence[JournalEntry],
    today: date
) -> DailySummary:
    todays_moods = [m.intensity for m in moods if m.timestamp.date() == today]
    return DailySummary(
        day=today,
        mood_entries=len(todays_moods),
        average_mood=_mean(todays_moods) if todays_moods else 0.0,
        journal_entries=sum(1 for j in journals if j.timestamp.date() == today),
    )


@dataclass(frozen=True)
class AnalysisReport:
    """Everything the analyzer view needs for one timeframe."""
    timeframe: Timeframe
    generated_at: datetime
    stats: MoodStats
    stability: str
    patterns: List[Pattern] = field(default_factory=list)
    insights: List[Insight] = field(default_factory=list)
    mood_count: int = 0
    journal_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeframe": self.timeframe.value,
            "generated_at": self.generated_at.isoformat(),
            "stats": self.stats.to_dict(),
            "stability": self.stability,
            "patterns": [p.to_dict() for p in self.patterns],
            "insights": [i.to_dict() for i in self.insights],
            "mood_count": self.mood_count,
            "journal_count": self.journal_count,
        }


class MoodAnalyzer:
    """
    Runs the full analysis pipeline over log snapshots:
    filter -> stats -> patterns -> insights.
    Owns no persistent state.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock

    def analyze(
        self,
        moods: Sequence[MoodEntry],
        journals: Sequence[JournalEntry],
        timeframe: Timeframe = Timeframe.MONTH
    ) -> AnalysisReport:
        now = self._clock()
        filtered_moods = filter_by_timeframe(moods, timeframe, now)
        filtered_journals = filter_by_timeframe(journals, timeframe, now)

        stats = compute_mood_stats(filtered_moods)

        return AnalysisReport(
            timeframe=timeframe,
            generated_at=now,
            stats=stats,
            stability=stability_label(stats.variance),
            patterns=detect_patterns(filtered_moods, filtered_journals, stats),
            insights=generate_insights(stats, filtered_moods, filtered_journals, timeframe),
            mood_count=len(filtered_moods),
            journal_count=len(filtered_journals),
        )

    def today(
        self,
        moods: Sequence[MoodEntry],
        journals: Sequence[JournalEntry]
    ) -> DailySummary:
        return daily_summary(moods, journals, self._clock().date())
