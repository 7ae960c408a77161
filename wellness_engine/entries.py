"""
Event Log Store Module

Append-only mood and journal logs. Entries are immutable once created and
are always appended with the current time, so insertion order is
chronological order.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Any, Tuple, Iterator, Generic, TypeVar
from enum import Enum


class InvalidEntryError(ValueError):
    """Raised when a submission is rejected at the engine boundary."""


class MoodTag(Enum):
    """Closed set of moods a user can log."""
    HAPPY = "happy"
    CALM = "calm"
    ANXIOUS = "anxious"
    SAD = "sad"
    MOTIVATED = "motivated"
    NEUTRAL = "neutral"
    STRESSED = "stressed"
    PEACEFUL = "peaceful"


MIN_INTENSITY = 1
MAX_INTENSITY = 10
MIN_JOURNAL_LENGTH = 10


@dataclass(frozen=True)
class MoodEntry:
    """A single mood check-in."""
    mood: MoodTag
    intensity: int  # 1 - 10
    timestamp: datetime


@dataclass(frozen=True)
class JournalEntry:
    """A journal entry plus the result of its analysis step."""
    id: str
    content: str
    timestamp: datetime
    mood: str
    emotions: Tuple[str, ...] = field(default_factory=tuple)
    ai_insight: Optional[str] = None


def parse_mood_tag(tag: Any) -> MoodTag:
    """Resolve a mood tag from an enum member or its string value."""
    if isinstance(tag, MoodTag):
        return tag
    try:
        return MoodTag(str(tag).strip().lower())
    except ValueError:
        raise InvalidEntryError(f"Unknown mood tag: {tag!r}") from None


def validate_mood(tag: Any, intensity: Any) -> Tuple[MoodTag, int]:
    """
    Validate a mood submission.

    Returns:
        Tuple of (mood_tag, intensity)

    Raises:
        InvalidEntryError: unknown tag or intensity outside 1-10
    """
    mood = parse_mood_tag(tag)

    # bool is an int subclass; reject it explicitly
    if isinstance(intensity, bool) or not isinstance(intensity, int):
        raise InvalidEntryError(f"Intensity must be an integer, got {intensity!r}")
    if not MIN_INTENSITY <= intensity <= MAX_INTENSITY:
        raise InvalidEntryError(
            f"Intensity must be between {MIN_INTENSITY} and {MAX_INTENSITY}, got {intensity}"
        )

    return mood, intensity


def validate_journal_text(text: Any) -> str:
    """Reject journal text shorter than MIN_JOURNAL_LENGTH once stripped."""
    if not isinstance(text, str):
        raise InvalidEntryError("Journal entry must be text")

    stripped = text.strip()
    if len(stripped) < MIN_JOURNAL_LENGTH:
        raise InvalidEntryError(
            f"Journal entry too short ({len(stripped)} chars, "
            f"minimum {MIN_JOURNAL_LENGTH})"
        )
    return stripped


EntryT = TypeVar("EntryT", MoodEntry, JournalEntry)


class EventLog(Generic[EntryT]):
    """
    Append-only ordered collection of entries.
    Readers only ever receive immutable snapshots.
    """

    def __init__(self, entries: Optional[List[EntryT]] = None):
        self._entries: List[EntryT] = list(entries or [])

    def append(self, entry: EntryT) -> None:
        self._entries.append(entry)

    def snapshot(self) -> Tuple[EntryT, ...]:
        return tuple(self._entries)

    def latest(self) -> Optional[EntryT]:
        return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[EntryT]:
        return iter(self.snapshot())
