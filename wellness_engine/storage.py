"""
Persistence Module

Key-value persistence for the profile and both logs, keyed by a fixed
namespace. Pydantic models define the stored documents; timestamps are
stored as ISO-8601 strings and parsed back to datetimes on load.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
import json
import os

from pydantic import BaseModel, Field, ValidationError, field_validator

from .config import WELLNESS_DATA_DIR, WELLNESS_NAMESPACE
from .engagement import UserProfile, ResponseStyle, ConsentAnswer
from .entries import MoodEntry, JournalEntry, MoodTag


class PersistenceError(Exception):
    """Raised by storage ports when a read or write fails."""


def to_local_naive(value: datetime) -> datetime:
    """
    Engine timestamps are naive local time. Documents written by other
    clients may carry an offset (e.g. "...T12:00:00.000Z"); convert those.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class ProfileRecord(BaseModel):
    """Stored document for the user profile."""
    level: int = 1  # informational; recomputed from xp on load
    xp: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    current_mood: Optional[str] = None
    response_style: str = ResponseStyle.NEUTRAL.value
    mental_health_history: List[str] = []
    current_treatment: str = ConsentAnswer.PREFER_NOT_TO_SAY.value
    medication: str = ConsentAnswer.PREFER_NOT_TO_SAY.value
    crisis_support: str = ConsentAnswer.NO.value

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "ProfileRecord":
        return cls(**profile.to_dict())

    def to_profile(self) -> UserProfile:
        try:
            style = ResponseStyle(self.response_style)
        except ValueError:
            style = ResponseStyle.NEUTRAL
        return UserProfile(
            xp=self.xp,
            streak=self.streak,
            current_mood=MoodTag(self.current_mood) if self.current_mood else None,
            response_style=style,
            mental_health_history=frozenset(self.mental_health_history),
            current_treatment=ConsentAnswer.parse(self.current_treatment),
            medication=ConsentAnswer.parse(self.medication),
            crisis_support=ConsentAnswer.parse(self.crisis_support),
        )


class MoodRecord(BaseModel):
    """Stored document for one mood entry."""
    mood: str
    intensity: int = Field(ge=1, le=10)
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return to_local_naive(value)

    @classmethod
    def from_entry(cls, entry: MoodEntry) -> "MoodRecord":
        return cls(mood=entry.mood.value, intensity=entry.intensity, timestamp=entry.timestamp)

    def to_entry(self) -> MoodEntry:
        return MoodEntry(mood=MoodTag(self.mood), intensity=self.intensity, timestamp=self.timestamp)


class JournalRecord(BaseModel):
    """Stored document for one journal entry."""
    id: str
    content: str
    mood: str = "neutral"
    timestamp: datetime
    emotions: List[str] = []
    ai_insight: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        # Millisecond ids from other clients arrive as JSON numbers
        return str(value) if isinstance(value, int) else value

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return to_local_naive(value)

    @classmethod
    def from_entry(cls, entry: JournalEntry) -> "JournalRecord":
        return cls(
            id=entry.id,
            content=entry.content,
            mood=entry.mood,
            timestamp=entry.timestamp,
            emotions=list(entry.emotions),
            ai_insight=entry.ai_insight,
        )

    def to_entry(self) -> JournalEntry:
        return JournalEntry(
            id=self.id,
            content=self.content,
            timestamp=self.timestamp,
            mood=self.mood,
            emotions=tuple(self.emotions),
            ai_insight=self.ai_insight,
        )


class StoragePort(ABC):
    """
    Read/write port the engine depends on.

    Subclasses provide raw key access via _read/_write; this class owns
    the document format. All failures surface as PersistenceError.
    """

    PROFILE_KEY = "profile"
    MOOD_KEY = "mood_history"
    JOURNAL_KEY = "journal_entries"

    def __init__(self, namespace: str = WELLNESS_NAMESPACE):
        self.namespace = namespace

    def _key(self, name: str) -> str:
        return f"{self.namespace}_{name}"

    @abstractmethod
    def _read(self, key: str) -> Optional[str]:
        """Raw document for key, or None when it does not exist."""

    @abstractmethod
    def _write(self, key: str, payload: str) -> None:
        """Replace the raw document stored under key."""

    def _load_json(self, name: str):
        key = self._key(name)
        try:
            raw = self._read(key)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to read {key}: {e}") from e

        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Corrupt document {key}: {e}") from e

    def _save_json(self, name: str, document) -> None:
        key = self._key(name)
        try:
            self._write(key, json.dumps(document, ensure_ascii=False))
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to write {key}: {e}") from e

    # Profile

    def load_profile(self) -> Optional[UserProfile]:
        data = self._load_json(self.PROFILE_KEY)
        if data is None:
            return None
        try:
            return ProfileRecord.model_validate(data).to_profile()
        except (ValidationError, ValueError) as e:
            raise PersistenceError(f"Invalid profile document: {e}") from e

    def save_profile(self, profile: UserProfile) -> None:
        self._save_json(self.PROFILE_KEY, ProfileRecord.from_profile(profile).model_dump(mode="json"))

    # Mood log

    def load_mood_log(self) -> List[MoodEntry]:
        data = self._load_json(self.MOOD_KEY) or []
        try:
            return [MoodRecord.model_validate(item).to_entry() for item in data]
        except (ValidationError, ValueError, TypeError) as e:
            raise PersistenceError(f"Invalid mood history document: {e}") from e

    def save_mood_log(self, log: List[MoodEntry]) -> None:
        self._save_json(
            self.MOOD_KEY,
            [MoodRecord.from_entry(entry).model_dump(mode="json") for entry in log],
        )

    # Journal log

    def load_journal_log(self) -> List[JournalEntry]:
        data = self._load_json(self.JOURNAL_KEY) or []
        try:
            return [JournalRecord.model_validate(item).to_entry() for item in data]
        except (ValidationError, ValueError, TypeError) as e:
            raise PersistenceError(f"Invalid journal document: {e}") from e

    def save_journal_log(self, log: List[JournalEntry]) -> None:
        self._save_json(
            self.JOURNAL_KEY,
            [JournalRecord.from_entry(entry).model_dump(mode="json") for entry in log],
        )


class InMemoryStorage(StoragePort):
    """Process-local storage for tests and throwaway sessions."""

    def __init__(self, namespace: str = WELLNESS_NAMESPACE):
        super().__init__(namespace)
        self.documents: Dict[str, str] = {}

    def _read(self, key: str) -> Optional[str]:
        return self.documents.get(key)

    def _write(self, key: str, payload: str) -> None:
        self.documents[key] = payload


class JsonFileStorage(StoragePort):
    """One JSON file per key inside a data directory."""

    def __init__(
        self,
        directory: str = WELLNESS_DATA_DIR,
        namespace: str = WELLNESS_NAMESPACE
    ):
        super().__init__(namespace)
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, payload: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, path)
