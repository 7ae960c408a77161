"""
Tests for Engagement State Module

Tests XP rewards, level derivation, streak policies and level-up events.
"""

import pytest
from datetime import datetime, date, timedelta
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from wellness_engine.entries import MoodEntry, JournalEntry, MoodTag
from wellness_engine.engagement import (
    EngagementManager, UserProfile, OnboardingSeed, ResponseStyle,
    ConsentAnswer, ActivitySource, StreakPolicy, OnboardingRequiredError,
    calculate_streak, level_for_xp, xp_progress, evaluate_achievements,
    MOOD_XP_REWARD, JOURNAL_XP_REWARD
)


TODAY = date(2026, 10, 19)  # Monday


def at(day: date, hour: int = 12) -> datetime:
    return datetime(day.year, day.month, day.day, hour, 0)


def mood_on(day: date, intensity: int = 6) -> MoodEntry:
    return MoodEntry(MoodTag.CALM, intensity, at(day))


def journal_on(day: date) -> JournalEntry:
    return JournalEntry(id=day.isoformat(), content="Reflecting on the day.",
                        timestamp=at(day), mood="calm")


class TestLevels:
    """Level is a pure function of XP."""

    @pytest.mark.parametrize("xp,level", [
        (0, 1), (10, 1), (99, 1), (100, 2), (199, 2), (250, 3), (1000, 11)
    ])
    def test_level_for_xp(self, xp, level):
        assert level_for_xp(xp) == level

    def test_profile_level_is_derived(self):
        assert UserProfile(xp=340).level == 4

    def test_xp_progress_within_level(self):
        assert xp_progress(135) == (35, 100)
        assert xp_progress(0) == (0, 100)


class TestStreak:
    """Backward calendar-day walk."""

    def test_empty_log_is_zero(self):
        assert calculate_streak([], TODAY) == 0

    def test_consecutive_days_including_today(self):
        stamps = [at(TODAY - timedelta(days=i)) for i in range(4)]
        assert calculate_streak(stamps, TODAY) == 4

    def test_multiple_entries_same_day_count_once(self):
        stamps = [at(TODAY, 8), at(TODAY, 20), at(TODAY - timedelta(days=1))]
        assert calculate_streak(stamps, TODAY) == 2

    def test_missing_today_pending_policy(self):
        """Day not over yet: yesterday's run still counts."""
        stamps = [at(TODAY - timedelta(days=i)) for i in range(1, 4)]
        assert calculate_streak(stamps, TODAY, StreakPolicy.TODAY_PENDING) == 3

    def test_missing_today_breaks_policy(self):
        """No entry today zeroes the streak."""
        stamps = [at(TODAY - timedelta(days=i)) for i in range(1, 4)]
        assert calculate_streak(stamps, TODAY, StreakPolicy.TODAY_BREAKS) == 0

    def test_both_policies_agree_when_today_logged(self):
        stamps = [at(TODAY - timedelta(days=i)) for i in range(3)]
        assert calculate_streak(stamps, TODAY, StreakPolicy.TODAY_PENDING) == 3
        assert calculate_streak(stamps, TODAY, StreakPolicy.TODAY_BREAKS) == 3

    def test_gap_breaks_run(self):
        stamps = [at(TODAY), at(TODAY - timedelta(days=1)), at(TODAY - timedelta(days=3))]
        assert calculate_streak(stamps, TODAY) == 2

    def test_pending_policy_skips_leading_gap(self):
        """Before any day counts, empty days are skipped."""
        stamps = [at(TODAY - timedelta(days=i)) for i in (7, 8, 9)]
        assert calculate_streak(stamps, TODAY, StreakPolicy.TODAY_PENDING) == 3

    def test_never_exceeds_lookback(self):
        stamps = [at(TODAY - timedelta(days=i)) for i in range(45)]
        assert calculate_streak(stamps, TODAY) == 30

    def test_five_days_then_missed_day(self):
        """Five daily moods, day 6 missed, day 7 submission: streak is 1."""
        start = TODAY - timedelta(days=6)
        manager = EngagementManager(profile=UserProfile(), clock=lambda: at(start))

        for offset in range(5):
            day = start + timedelta(days=offset)
            manager._clock = lambda d=day: at(d)
            manager.record_mood(mood_on(day))
        assert manager.profile.streak == 5

        manager._clock = lambda: at(TODAY)
        profile = manager.record_mood(mood_on(TODAY))
        assert profile.streak == 1


class TestEngagementManager:
    """XP, level and streak transitions on submission."""

    def make_manager(self, xp: int = 0, **kwargs) -> EngagementManager:
        return EngagementManager(profile=UserProfile(xp=xp), clock=lambda: at(TODAY), **kwargs)

    def test_mood_awards_xp_and_sets_current_mood(self):
        manager = self.make_manager()
        profile = manager.record_mood(MoodEntry(MoodTag.HAPPY, 8, at(TODAY)))

        assert profile.xp == MOOD_XP_REWARD
        assert profile.current_mood == MoodTag.HAPPY
        assert profile.streak == 1
        assert len(manager.mood_log) == 1

    def test_journal_awards_more_xp(self):
        manager = self.make_manager()
        profile = manager.record_journal(journal_on(TODAY))

        assert profile.xp == JOURNAL_XP_REWARD
        assert JOURNAL_XP_REWARD > MOOD_XP_REWARD
        assert profile.current_mood is None
        assert len(manager.journal_log) == 1

    def test_journal_streak_uses_journal_log(self):
        manager = self.make_manager()
        manager.mood_log.append(mood_on(TODAY - timedelta(days=1)))
        manager.mood_log.append(mood_on(TODAY - timedelta(days=2)))

        profile = manager.record_journal(journal_on(TODAY))
        assert profile.streak == 1

    def test_level_never_decreases_across_submissions(self):
        manager = self.make_manager()
        levels = []
        xps = []
        for i in range(25):
            if i % 3 == 0:
                profile = manager.record_journal(journal_on(TODAY))
            else:
                profile = manager.record_mood(mood_on(TODAY))
            levels.append(profile.level)
            xps.append(profile.xp)

        assert levels == sorted(levels)
        assert xps == sorted(xps)
        assert all(p == level_for_xp(x) for p, x in zip(levels, xps))

    def test_level_up_event_from_mood(self):
        manager = self.make_manager(xp=95)
        events = []
        manager.register_listener(events.append)

        manager.record_mood(mood_on(TODAY))

        assert len(events) == 1
        assert events[0].source == ActivitySource.MOOD
        assert events[0].previous_level == 1
        assert events[0].new_level == 2
        assert "Keep up the great work" in events[0].message

    def test_level_up_event_from_journal(self):
        manager = self.make_manager(xp=90)
        events = []
        manager.register_listener(events.append)

        manager.record_journal(journal_on(TODAY))

        assert events[0].source == ActivitySource.JOURNAL
        assert "self-reflection" in events[0].message

    def test_no_event_without_level_change(self):
        manager = self.make_manager(xp=10)
        events = []
        manager.register_listener(events.append)
        manager.record_mood(mood_on(TODAY))
        assert events == []

    def test_failing_listener_does_not_break_submission(self):
        manager = self.make_manager(xp=95)

        def broken(event):
            raise RuntimeError("ui gone")

        manager.register_listener(broken)
        profile = manager.record_mood(mood_on(TODAY))
        assert profile.level == 2

    def test_recording_requires_profile(self):
        manager = EngagementManager(profile=None, clock=lambda: at(TODAY))
        with pytest.raises(OnboardingRequiredError):
            manager.record_mood(mood_on(TODAY))
        assert len(manager.mood_log) == 0

    def test_read_only_streak_query_uses_policy(self):
        manager = self.make_manager(streak_policy=StreakPolicy.TODAY_BREAKS)
        manager.mood_log.append(mood_on(TODAY - timedelta(days=1)))
        assert manager.current_streak(ActivitySource.MOOD) == 0

        manager.streak_policy = StreakPolicy.TODAY_PENDING
        assert manager.current_streak(ActivitySource.MOOD) == 1


class TestOnboarding:
    """Profile creation from wizard answers."""

    def test_seed_from_labels(self):
        seed = OnboardingSeed.from_dict({
            "response_style": "Gentle",
            "mental_health_history": ["Anxiety", "PTSD"],
            "current_treatment": "Prefer not to say",
            "medication": "No",
            "crisis_support": "Yes",
        })
        profile = UserProfile.from_onboarding(seed)

        assert profile.response_style == ResponseStyle.GENTLE
        assert profile.mental_health_history == frozenset({"Anxiety", "PTSD"})
        assert profile.current_treatment == ConsentAnswer.PREFER_NOT_TO_SAY
        assert profile.medication == ConsentAnswer.NO
        assert profile.wants_crisis_support
        assert (profile.level, profile.xp, profile.streak) == (1, 0, 0)

    def test_unknown_style_falls_back_to_neutral(self):
        seed = OnboardingSeed.from_dict({"response_style": "sarcastic"})
        assert seed.response_style == ResponseStyle.NEUTRAL


class TestAchievements:

    def test_unlock_thresholds(self):
        profile = UserProfile(xp=10, streak=5)
        unlocked = {a.key: a.unlocked for a in evaluate_achievements(profile, 7, 2)}

        assert unlocked == {
            "first_steps": True,
            "mood_master": True,
            "thoughtful_writer": False,
            "consistent_tracker": True,
        }

    def test_fresh_profile_has_nothing(self):
        achievements = evaluate_achievements(UserProfile(), 0, 0)
        assert not any(a.unlocked for a in achievements)
