"""
Wellness Engine - Mood Analytics, Engagement & Crisis Triage

An embedded engine for a personal wellbeing companion: records mood and
journal entries, derives statistics and pattern insights, drives the
XP/level/streak layer, and triages chat messages for crisis risk.

Layers:
1. Event Log Store (append-only logs) - entries.py
2. Engagement State (XP, levels, streaks) - engagement.py
3. Statistics & Patterns (windowed analysis) - analytics.py
4. Crisis Triage (keyword classification) - triage.py
5. Companion Responses (templates) - responses.py
6. Conversation (chat state machine) - conversation.py
7. Journal Analysis (deferred, cancellable) - journal_analysis.py
8. Persistence (injected storage port) - storage.py
9. Engine (UI-facing coordinator) - engine.py
"""

from .entries import (
    MoodEntry,
    JournalEntry,
    MoodTag,
    EventLog,
    InvalidEntryError,
    validate_mood,
    validate_journal_text,
    MIN_JOURNAL_LENGTH,
)

from .engagement import (
    EngagementManager,
    UserProfile,
    OnboardingSeed,
    ResponseStyle,
    ConsentAnswer,
    ActivitySource,
    StreakPolicy,
    LevelUpEvent,
    Achievement,
    OnboardingRequiredError,
    calculate_streak,
    level_for_xp,
    xp_progress,
    evaluate_achievements,
)

from .analytics import (
    MoodAnalyzer,
    AnalysisReport,
    MoodStats,
    Pattern,
    PatternImpact,
    Insight,
    InsightType,
    Timeframe,
    DailySummary,
    filter_by_timeframe,
    compute_mood_stats,
    detect_patterns,
    generate_insights,
)

from .triage import (
    CrisisClassifier,
    TriageResult,
    Topic,
    CRISIS_KEYWORDS,
)

from .responses import (
    ResponseGenerator,
    welcome_message,
    greeting,
)

from .conversation import (
    ChatSession,
    ConversationState,
    ConversationBusyError,
    CrisisAlert,
    Message,
    Sender,
)

from .journal_analysis import (
    JournalAnalysisScheduler,
    JournalAnalysis,
    analyze_journal_text,
)

from .storage import (
    StoragePort,
    JsonFileStorage,
    InMemoryStorage,
    PersistenceError,
)

from .engine import (
    WellnessEngine,
    EngineWarning,
    NotificationKind,
)

__version__ = "0.1.0"
__all__ = [
    # Entries
    "MoodEntry",
    "JournalEntry",
    "MoodTag",
    "EventLog",
    "InvalidEntryError",
    "validate_mood",
    "validate_journal_text",
    "MIN_JOURNAL_LENGTH",
    # Engagement
    "EngagementManager",
    "UserProfile",
    "OnboardingSeed",
    "ResponseStyle",
    "ConsentAnswer",
    "ActivitySource",
    "StreakPolicy",
    "LevelUpEvent",
    "Achievement",
    "OnboardingRequiredError",
    "calculate_streak",
    "level_for_xp",
    "xp_progress",
    "evaluate_achievements",
    # Analytics
    "MoodAnalyzer",
    "AnalysisReport",
    "MoodStats",
    "Pattern",
    "PatternImpact",
    "Insight",
    "InsightType",
    "Timeframe",
    "DailySummary",
    "filter_by_timeframe",
    "compute_mood_stats",
    "detect_patterns",
    "generate_insights",
    # Triage
    "CrisisClassifier",
    "TriageResult",
    "Topic",
    "CRISIS_KEYWORDS",
    # Responses
    "ResponseGenerator",
    "welcome_message",
    "greeting",
    # Conversation
    "ChatSession",
    "ConversationState",
    "ConversationBusyError",
    "CrisisAlert",
    "Message",
    "Sender",
    # Journal Analysis
    "JournalAnalysisScheduler",
    "JournalAnalysis",
    "analyze_journal_text",
    # Persistence
    "StoragePort",
    "JsonFileStorage",
    "InMemoryStorage",
    "PersistenceError",
    # Engine
    "WellnessEngine",
    "EngineWarning",
    "NotificationKind",
]
