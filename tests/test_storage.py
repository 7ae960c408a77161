"""
Tests for Persistence Module

Tests document round-trips, the on-disk format, and failure reporting.
"""

import pytest
import json
from datetime import datetime, timezone
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from wellness_engine.entries import MoodEntry, JournalEntry, MoodTag
from wellness_engine.engagement import UserProfile, ResponseStyle, ConsentAnswer
from wellness_engine.storage import (
    StoragePort, InMemoryStorage, JsonFileStorage, PersistenceError, JournalRecord
)


PROFILE = UserProfile(
    xp=230,
    streak=4,
    current_mood=MoodTag.PEACEFUL,
    response_style=ResponseStyle.MOTIVATIONAL,
    mental_health_history=frozenset({"Anxiety"}),
    crisis_support=ConsentAnswer.YES,
)
MOODS = [
    MoodEntry(MoodTag.HAPPY, 8, datetime(2026, 10, 18, 9, 30)),
    MoodEntry(MoodTag.STRESSED, 3, datetime(2026, 10, 19, 17, 45)),
]
JOURNALS = [
    JournalEntry(
        id="j-1",
        content="Long day, but the evening was calm.",
        timestamp=datetime(2026, 10, 19, 21, 0),
        mood="calm",
        emotions=("hopeful", "grateful"),
        ai_insight="Balanced reflection.",
    ),
]


class FailingStorage(InMemoryStorage):
    """Storage whose backend is unreachable."""

    def _read(self, key):
        raise OSError("disk unavailable")

    def _write(self, key, payload):
        raise OSError("disk full")


class TestInMemoryStorage:

    def test_missing_documents(self):
        storage = InMemoryStorage()
        assert storage.load_profile() is None
        assert storage.load_mood_log() == []
        assert storage.load_journal_log() == []

    def test_profile_restored(self):
        storage = InMemoryStorage()
        storage.save_profile(PROFILE)

        restored = storage.load_profile()
        assert restored == PROFILE
        assert restored.level == 3

    def test_logs_restored_in_order(self):
        storage = InMemoryStorage()
        storage.save_mood_log(MOODS)
        storage.save_journal_log(JOURNALS)

        assert storage.load_mood_log() == MOODS
        assert storage.load_journal_log() == JOURNALS

    def test_timestamps_stored_as_iso_strings(self):
        storage = InMemoryStorage(namespace="test")
        storage.save_mood_log(MOODS)

        document = json.loads(storage.documents["test_mood_history"])
        assert document[0]["timestamp"] == "2026-10-18T09:30:00"
        assert document[0]["mood"] == "happy"

    def test_profile_document_keys(self):
        storage = InMemoryStorage()
        storage.save_profile(PROFILE)

        document = json.loads(storage.documents["mental_health_profile"])
        assert document["level"] == 3
        assert document["xp"] == 230
        assert document["response_style"] == "motivational"

    def test_corrupt_json(self):
        storage = InMemoryStorage()
        storage.documents["mental_health_mood_history"] = "{not json"
        with pytest.raises(PersistenceError):
            storage.load_mood_log()

    def test_invalid_intensity_rejected(self):
        storage = InMemoryStorage()
        storage.documents["mental_health_mood_history"] = json.dumps(
            [{"mood": "happy", "intensity": 42, "timestamp": "2026-10-19T10:00:00"}]
        )
        with pytest.raises(PersistenceError):
            storage.load_mood_log()

    def test_backend_errors_wrapped(self):
        storage = FailingStorage()
        with pytest.raises(PersistenceError):
            storage.load_profile()
        with pytest.raises(PersistenceError):
            storage.save_journal_log(JOURNALS)


class TestJsonFileStorage:

    def test_round_trip_on_disk(self, tmp_path):
        storage = JsonFileStorage(directory=str(tmp_path / "data"), namespace="mh")
        storage.save_profile(PROFILE)
        storage.save_mood_log(MOODS)
        storage.save_journal_log(JOURNALS)

        assert (tmp_path / "data" / "mh_profile.json").exists()
        assert (tmp_path / "data" / "mh_mood_history.json").exists()
        assert (tmp_path / "data" / "mh_journal_entries.json").exists()

        reopened = JsonFileStorage(directory=str(tmp_path / "data"), namespace="mh")
        assert reopened.load_profile() == PROFILE
        assert reopened.load_mood_log() == MOODS
        assert reopened.load_journal_log() == JOURNALS

    def test_no_temp_files_left(self, tmp_path):
        storage = JsonFileStorage(directory=str(tmp_path))
        storage.save_mood_log(MOODS)
        assert not list(tmp_path.glob("*.tmp"))

    def test_missing_directory_reads_empty(self, tmp_path):
        storage = JsonFileStorage(directory=str(tmp_path / "nowhere"))
        assert storage.load_profile() is None
        assert storage.load_mood_log() == []

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "mental_health_profile.json").write_text("[[", encoding="utf-8")
        storage = JsonFileStorage(directory=str(tmp_path))
        with pytest.raises(PersistenceError):
            storage.load_profile()


class TestOffsetTimestamps:
    """Documents written with a UTC offset load as naive local time."""

    UTC_NOON = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

    def test_zulu_mood_timestamp_normalized(self):
        storage = InMemoryStorage()
        storage.documents["mental_health_mood_history"] = json.dumps(
            [{"mood": "happy", "intensity": 8, "timestamp": "2026-10-18T12:00:00.000Z"}]
        )

        entry = storage.load_mood_log()[0]

        assert entry.timestamp.tzinfo is None
        assert entry.timestamp == self.UTC_NOON.astimezone().replace(tzinfo=None)

    def test_offset_journal_timestamp_normalized(self):
        storage = InMemoryStorage()
        storage.documents["mental_health_journal_entries"] = json.dumps([{
            "id": 1760788800000,
            "content": "Quiet morning with coffee.",
            "mood": "calm",
            "timestamp": "2026-10-18T14:00:00+02:00",
        }])

        entry = storage.load_journal_log()[0]

        assert entry.id == "1760788800000"
        assert entry.timestamp.tzinfo is None
        assert entry.timestamp == self.UTC_NOON.astimezone().replace(tzinfo=None)

    def test_normalized_entries_save_without_offset(self):
        storage = InMemoryStorage()
        storage.documents["mental_health_mood_history"] = json.dumps(
            [{"mood": "calm", "intensity": 5, "timestamp": "2026-10-18T12:00:00Z"}]
        )
        storage.save_mood_log(storage.load_mood_log())

        stored = json.loads(storage.documents["mental_health_mood_history"])[0]["timestamp"]
        assert not stored.endswith("Z")
        assert "+" not in stored


class TestStoragePort:

    def test_port_is_abstract(self):
        with pytest.raises(TypeError):
            StoragePort()

    def test_journal_document_shape(self):
        record = JournalRecord.from_entry(JOURNALS[0])
        document = record.model_dump(mode="json")

        assert document["timestamp"] == "2026-10-19T21:00:00"
        assert document["emotions"] == ["hopeful", "grateful"]
        assert JournalRecord.model_validate(document).to_entry() == JOURNALS[0]
