"""
Companion Response Module

Selects supportive replies for chat messages. Crisis messages always get
the safety response; everything else is a style-conditioned template
lookup keyed by the detected topic, with a random pick from a general
pool when no topic matches.
"""

from datetime import datetime
from typing import List, Dict, Optional
import random

from .engagement import ResponseStyle
from .triage import CrisisClassifier, Topic, TriageResult


CRISIS_OPENERS: List[str] = [
    "I'm very concerned about what you're sharing. Your life has value and meaning. Please reach out for immediate help:",
    "I hear that you're in tremendous pain right now. You don't have to go through this alone. Please contact:",
    "What you're feeling is valid, but I want you to be safe. There are people who want to help you right now:",
]

CRISIS_RESOURCES = """

🆘 **Immediate Help Available:**
• **Call 988** - Suicide & Crisis Lifeline (24/7)
• **Text HOME to 741741** - Crisis Text Line
• **Call 911** - For immediate emergency
• **Go to your nearest emergency room**

You are not alone. These feelings can change. Help is available right now."""

FALLBACK_REPLY = (
    "I apologize, but I'm having trouble responding right now. If you're in crisis, "
    "please call 988 or your local emergency number immediately."
)


# One template per (topic, style)
TOPIC_RESPONSES: Dict[Topic, Dict[ResponseStyle, str]] = {
    Topic.ANXIETY: {
        ResponseStyle.GENTLE: (
            "I can sense the anxiety you're feeling, and I want you to know it's completely valid. "
            "Try taking three deep breaths with me: breathe in for 4 counts, hold for 4, exhale for 6. 🌸 "
            "Would you like to try a grounding exercise?"
        ),
        ResponseStyle.MOTIVATIONAL: (
            "Anxiety is tough, but you're tougher! 💪 Let's tackle this together. Try the 5-4-3-2-1 technique: "
            "name 5 things you can see, 4 you can touch, 3 you can hear, 2 you can smell, and 1 you can taste. "
            "You've got this!"
        ),
        ResponseStyle.NEUTRAL: (
            "Anxiety can feel overwhelming, but there are effective techniques to help manage it. "
            "Would you like to try a breathing exercise or learn about grounding techniques?"
        ),
    },
    Topic.DEPRESSION: {
        ResponseStyle.GENTLE: (
            "I hear you, and I'm so sorry you're feeling this way. Depression can make everything feel heavy "
            "and difficult. Please remember that what you're feeling is valid, and there is hope for brighter "
            "days. 💙 Small steps count - even just reaching out here shows strength."
        ),
        ResponseStyle.MOTIVATIONAL: (
            "I know depression feels like a heavy weight, but you're showing incredible strength by talking "
            "about it! 🌟 Every small step forward is a victory. What's one tiny thing that brought you even "
            "a moment of peace recently?"
        ),
        ResponseStyle.NEUTRAL: (
            "Depression can be very challenging, and I'm glad you're reaching out. Remember that seeking help "
            "is a sign of strength, not weakness. Are you currently receiving professional support?"
        ),
    },
    Topic.SLEEP: {
        ResponseStyle.GENTLE: (
            "Rest can feel so far away sometimes, and that's really hard. 🌙 Be kind to yourself tonight: "
            "dim the lights, put the screens away, and let your body slow down. Would a calming bedtime "
            "routine help?"
        ),
        ResponseStyle.MOTIVATIONAL: (
            "Great sleep is a skill, and you can build it! 😴 Lock in a consistent bedtime, ditch the screens "
            "an hour before, and own your wind-down routine. Which one will you start tonight?"
        ),
        ResponseStyle.NEUTRAL: (
            "Sleep issues can significantly impact mental health. Some helpful strategies include maintaining "
            "a consistent sleep schedule, avoiding screens before bedtime, and creating a calming bedtime "
            "routine. Have you tried any relaxation techniques before sleep?"
        ),
    },
    Topic.STRESS: {
        ResponseStyle.GENTLE: (
            "Feeling overwhelmed is so human, and you're not alone in this feeling. 🌿 When stress builds up, "
            "our minds need gentle care. Try placing your hand on your heart and taking slow, deep breaths. "
            "What's feeling most overwhelming right now?"
        ),
        ResponseStyle.MOTIVATIONAL: (
            "Stress is your mind's way of saying 'Hey, we need to tackle this!' 🎯 You've handled 100% of "
            "your tough days so far - that's a perfect track record! Let's break down what's overwhelming "
            "you into manageable pieces."
        ),
        ResponseStyle.NEUTRAL: (
            "Stress can feel overwhelming, but breaking things down into smaller, manageable steps can help. "
            "What's the main source of your stress right now?"
        ),
    },
}

GENERAL_RESPONSES: Dict[ResponseStyle, List[str]] = {
    ResponseStyle.GENTLE: [
        "Thank you for trusting me with your feelings, dear soul. 💫 You're being so brave by reaching out. "
        "What gentle support do you need most right now?",
        "I can feel the courage it took to share that with me. 🌸 Your feelings matter deeply. "
        "How can I best support you in this moment?",
        "You're in a safe space here, beautiful human. 💙 Whatever you're feeling is completely valid. "
        "What would bring you the most peace right now?",
    ],
    ResponseStyle.MOTIVATIONAL: [
        "I love that you're taking charge of your mental health - that's champion behavior! 🚀 "
        "What's your next move gonna be?",
        "You're showing incredible self-awareness by talking about this! 💪 That's already a huge step "
        "forward. What victory, even a small one, can we celebrate today?",
        "Look at you being proactive about your wellbeing! 🌟 You're already on the right path. "
        "What goal are we crushing next?",
    ],
    ResponseStyle.NEUTRAL: [
        "Thank you for sharing that with me. Your feelings are valid and important. "
        "What would be most helpful for you right now?",
        "I appreciate you opening up. It takes courage to talk about our mental health. "
        "How has your day been treating you?",
        "I'm here to listen and support you. What's been on your mind lately that you'd like to talk about?",
        "That sounds like it's been weighing on you. Sometimes just talking about things can help us "
        "process them better. Tell me more about how you're feeling.",
    ],
}

WELCOME_MESSAGES: Dict[ResponseStyle, str] = {
    ResponseStyle.GENTLE: (
        "Hello, beautiful soul 💙 I'm here to listen and support you on your mental health journey. "
        "How are you feeling today?"
    ),
    ResponseStyle.MOTIVATIONAL: (
        "Hey there, champion! 💪 I'm your mental health companion, ready to help you tackle whatever's "
        "on your mind. What's going on today?"
    ),
    ResponseStyle.NEUTRAL: (
        "Hello! I'm your mental health companion. I'm here to provide support, resources, and a "
        "listening ear. How can I help you today?"
    ),
}

GREETINGS: Dict[ResponseStyle, Dict[str, str]] = {
    ResponseStyle.GENTLE: {
        "morning": "Good morning, beautiful soul 🌸",
        "afternoon": "Good afternoon, dear friend 💫",
        "evening": "Good evening, peaceful spirit 🌙",
    },
    ResponseStyle.MOTIVATIONAL: {
        "morning": "Rise and shine, champion! 🚀",
        "afternoon": "Keep crushing it today! ⚡",
        "evening": "You've got this! Finish strong! 💪",
    },
    ResponseStyle.NEUTRAL: {
        "morning": "Good morning",
        "afternoon": "Good afternoon",
        "evening": "Good evening",
    },
}


def welcome_message(style: ResponseStyle) -> str:
    return WELCOME_MESSAGES.get(style, WELCOME_MESSAGES[ResponseStyle.NEUTRAL])


def greeting(style: ResponseStyle, now: Optional[datetime] = None) -> str:
    """Time-of-day greeting: morning before 12, afternoon before 17."""
    hour = (now or datetime.now()).hour
    time_of_day = "morning" if hour < 12 else "afternoon" if hour < 17 else "evening"
    return GREETINGS.get(style, GREETINGS[ResponseStyle.NEUTRAL])[time_of_day]


class ResponseGenerator:
    """
    Template-based reply selection.

    The random source is injectable so tests can pin the exact output.
    """

    def __init__(
        self,
        classifier: Optional[CrisisClassifier] = None,
        rng: Optional[random.Random] = None
    ):
        self.classifier = classifier or CrisisClassifier()
        self.rng = rng or random.Random()

    def crisis_response(self) -> str:
        """Random empathetic opener followed by the fixed resource block."""
        return self.rng.choice(CRISIS_OPENERS) + CRISIS_RESOURCES

    def contextual_response(self, triage: TriageResult, style: ResponseStyle) -> str:
        """Topic template for the style, else a random general reply."""
        if triage.topic is not None:
            return TOPIC_RESPONSES[triage.topic][style]
        return self.rng.choice(GENERAL_RESPONSES[style])

    def respond_to(self, triage: TriageResult, style: ResponseStyle) -> str:
        if triage.is_crisis:
            return self.crisis_response()
        return self.contextual_response(triage, style)

    def respond(self, text: str, style: ResponseStyle = ResponseStyle.NEUTRAL) -> str:
        """Classify and reply in one step."""
        return self.respond_to(self.classifier.classify(text), style)
