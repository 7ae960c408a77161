"""
Conversation Module

Chat session state machine:
IDLE -> AWAITING_RESPONSE -> IDLE

Each user message is classified for crisis risk, answered, and the
session returns to IDLE once the reply exists. Messages live only for
the active session and are never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any, Callable, Tuple
from enum import Enum
import logging
import uuid

from .engagement import ResponseStyle
from .responses import ResponseGenerator, FALLBACK_REPLY, welcome_message

logger = logging.getLogger(__name__)


class ConversationBusyError(RuntimeError):
    """Raised when a message arrives while a reply is still being produced."""


class ConversationState(Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


class Sender(Enum):
    USER = "user"
    BOT = "bot"


@dataclass(frozen=True)
class Message:
    """A single chat message."""
    id: str
    content: str
    sender: Sender
    timestamp: datetime
    is_emergency: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "sender": self.sender.value,
            "timestamp": self.timestamp.isoformat(),
            "is_emergency": self.is_emergency,
        }


@dataclass(frozen=True)
class CrisisAlert:
    """Crisis-detected notification for the UI layer."""
    message_id: str
    matched_keywords: Tuple[str, ...]
    show_banner: bool  # only when the user opted into crisis support
    timestamp: datetime = field(default_factory=datetime.now)


class ChatSession:
    """
    One active conversation.

    Key rules:
    1. Only one message is processed at a time
    2. Crisis messages bypass topic routing entirely
    3. The crisis banner is raised only for users who opted in
    """

    VALID_TRANSITIONS: Dict[ConversationState, List[ConversationState]] = {
        ConversationState.IDLE: [ConversationState.AWAITING_RESPONSE],
        ConversationState.AWAITING_RESPONSE: [ConversationState.IDLE],
    }

    def __init__(
        self,
        style: ResponseStyle = ResponseStyle.NEUTRAL,
        crisis_support_opt_in: bool = False,
        generator: Optional[ResponseGenerator] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.style = style
        self.crisis_support_opt_in = crisis_support_opt_in
        self.generator = generator or ResponseGenerator()
        self._clock = clock
        self.state = ConversationState.IDLE
        self.show_crisis_banner = False
        self._crisis_listeners: List[Callable[[CrisisAlert], None]] = []
        self.messages: List[Message] = [self._bot_message(welcome_message(style))]

    def register_crisis_listener(self, callback: Callable[[CrisisAlert], None]):
        self._crisis_listeners.append(callback)

    def _transition_to(self, new_state: ConversationState):
        if new_state not in self.VALID_TRANSITIONS[self.state]:
            raise ConversationBusyError(
                f"Cannot move from {self.state.value} to {new_state.value}"
            )
        self.state = new_state

    def _bot_message(self, content: str, is_emergency: bool = False) -> Message:
        return Message(
            id=uuid.uuid4().hex,
            content=content,
            sender=Sender.BOT,
            timestamp=self._clock(),
            is_emergency=is_emergency,
        )

    def send(self, text: str) -> Optional[Message]:
        """
        Process one user message and return the bot reply.

        Returns None for blank input (nothing is recorded).
        """
        if not isinstance(text, str) or not text.strip():
            return None

        self._transition_to(ConversationState.AWAITING_RESPONSE)
        try:
            user_message = Message(
                id=uuid.uuid4().hex,
                content=text.strip(),
                sender=Sender.USER,
                timestamp=self._clock(),
            )
            self.messages.append(user_message)

            triage = self.generator.classifier.classify(user_message.content)
            try:
                content = self.generator.respond_to(triage, self.style)
            except Exception as e:
                logger.error(f"Error generating response: {e}")
                content = FALLBACK_REPLY

            reply = self._bot_message(content, is_emergency=triage.is_crisis)
            self.messages.append(reply)
        finally:
            self.state = ConversationState.IDLE

        if triage.is_crisis:
            self._raise_crisis(reply, triage.matched_keywords)

        return reply

    def _raise_crisis(self, reply: Message, keywords: Tuple[str, ...]):
        if self.crisis_support_opt_in:
            self.show_crisis_banner = True

        alert = CrisisAlert(
            message_id=reply.id,
            matched_keywords=keywords,
            show_banner=self.crisis_support_opt_in,
            timestamp=reply.timestamp,
        )
        for callback in self._crisis_listeners:
            try:
                callback(alert)
            except Exception as e:
                logger.error(f"Crisis listener error: {e}")

    def dismiss_crisis_banner(self):
        self.show_crisis_banner = False

    def history(self) -> List[Message]:
        return self.messages.copy()
