"""
Tests for Journal Analysis Module

Tests the placeholder analyzer and last-submission-wins scheduling.
"""

import pytest
import threading
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from wellness_engine.journal_analysis import (
    JournalAnalysisScheduler, JournalAnalysis, analyze_journal_text,
    DEFAULT_EMOTIONS, DEFAULT_INSIGHT
)


class TestAnalyzeJournalText:

    def test_neutral_text(self):
        analysis = analyze_journal_text("Today I felt grateful for my friends.")
        assert analysis.mood == "calm"
        assert analysis.emotions == DEFAULT_EMOTIONS
        assert analysis.insight == DEFAULT_INSIGHT

    def test_topic_text(self):
        analysis = analyze_journal_text("I've been so anxious about work")
        assert analysis.mood == "anxious"
        assert analysis.emotions == ("reflective", "anxiety")


class TestScheduler:
    """Deferred, cancellable, last-submission-wins."""

    def test_zero_delay_runs_inline(self):
        scheduler = JournalAnalysisScheduler(delay=0)
        results = []

        token = scheduler.submit("Quiet evening reading a book.", lambda t, a: results.append((t, a)))

        assert token == 1
        assert len(results) == 1
        assert results[0][1].mood == "calm"
        assert not scheduler.pending

    def test_newer_submission_supersedes_pending(self):
        scheduler = JournalAnalysisScheduler(delay=60)
        results = []
        callback = lambda t, a: results.append(t)

        first = scheduler.submit("First draft of my thoughts.", callback)
        second = scheduler.submit("Second, final version of my thoughts.", callback)
        assert scheduler.pending
        assert scheduler.latest_token == second
        live_timer = scheduler._timer

        # Simulate both timers firing
        scheduler._run(first, "First draft of my thoughts.", callback)
        scheduler._run(second, "Second, final version of my thoughts.", callback)

        assert results == [second]
        assert not scheduler.pending
        live_timer.cancel()

    def test_cancel_discards_result(self):
        scheduler = JournalAnalysisScheduler(delay=60)
        results = []
        callback = lambda t, a: results.append(t)

        token = scheduler.submit("Something I wanted to write down.", callback)
        scheduler.cancel()
        scheduler._run(token, "Something I wanted to write down.", callback)

        assert results == []
        assert not scheduler.pending

    def test_timer_delivers_result(self):
        scheduler = JournalAnalysisScheduler(delay=0.01)
        done = threading.Event()
        results = []

        def callback(token, analysis):
            results.append(analysis)
            done.set()

        scheduler.submit("A long walk cleared my head.", callback)

        assert done.wait(timeout=5)
        assert results[0].mood == "calm"

    def test_analyzer_failure_falls_back_to_neutral(self):
        def broken(text):
            raise ValueError("model offline")

        scheduler = JournalAnalysisScheduler(delay=0, analyzer=broken)
        results = []
        scheduler.submit("Writing despite everything.", lambda t, a: results.append(a))

        assert results == [JournalAnalysis(mood="neutral")]
