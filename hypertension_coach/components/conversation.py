# hypertension_coach/components/conversation.py
"""
Conversation state for the coach chat.

At most one assistant message is "open" for appending at a time:

    NO_OPEN --stream fragment--> OPEN        (new assistant message created)
    OPEN    --stream fragment--> OPEN        (content appended in arrival order)
    any     --user message-----> NO_OPEN     (open reply closed)
    OPEN    --turn failed------> NO_OPEN     (reply removed if still empty)
"""
import logging
from enum import Enum
from typing import Dict, List, Optional

from hypertension_coach.components.models import Message, PredictionResult

logger = logging.getLogger(__name__)


class ReplySlot(Enum):
    NO_OPEN = "no_open"
    OPEN = "open"


GREETING_WITH_RESULT_EN = (
    "Hello! 🙏 Your Risk Level: {risk} (Stage: {stage})\n\n"
    "I'm your AI Hypertension Coach. Based on your assessment, I'll provide you:\n"
    "✓ Personalized Indian diet plans with specific foods\n"
    "✓ Yoga and exercise recommendations\n"
    "✓ Lifestyle modifications\n\n"
    "Ask me about your personalized diet plan, exercises, or medications!"
)
GREETING_WITH_RESULT_HI = (
    "नमस्ते! 🙏 आपका Risk Level: {risk} है (Stage: {stage})\n\n"
    "मैं आपका AI Hypertension Coach हूं। आपके BP को manage करने के लिए मैं आपको:\n"
    "✓ व्यक्तिगत भारतीय आहार योजना\n"
    "✓ योग और व्यायाम सुझाव\n"
    "✓ जीवनशैली संशोधन\n\n"
    "प्रदान करूंगा। कृपया अपने आहार, व्यायाम, या दवा के बारे में पूछें।"
)
GREETING_NO_RESULT_EN = (
    "Hello! 🙏 I'm your AI Hypertension Coach. Please complete the assessment first to receive "
    "personalized Indian diet plans, yoga recommendations, and lifestyle tips."
)
GREETING_NO_RESULT_HI = (
    "नमस्ते! 🙏 मैं आपका AI Hypertension Coach हूं। कृपया पहले assessment पूरा करें, "
    "फिर मुझसे diet, exercise, या lifestyle के बारे में पूछें।"
)


class Conversation:
    def __init__(self):
        self.messages: List[Message] = []
        self.slot = ReplySlot.NO_OPEN
        self._open_reply: Optional[Message] = None

    def greet(self, prediction: Optional[PredictionResult] = None) -> Optional[Message]:
        """Seed an empty conversation with the bilingual welcome message."""
        if self.messages:
            return None
        if prediction is not None:
            values = {"risk": prediction.risk_level.value, "stage": prediction.stage.value}
            english = GREETING_WITH_RESULT_EN.format(**values)
            hindi = GREETING_WITH_RESULT_HI.format(**values)
        else:
            english, hindi = GREETING_NO_RESULT_EN, GREETING_NO_RESULT_HI
        greeting = Message(role="assistant", content=f"{english}\n\n---\n\n{hindi}")
        self.messages.append(greeting)
        return greeting

    def add_user(self, content: str) -> Message:
        self.close_reply()
        message = Message(role="user", content=content)
        self.messages.append(message)
        return message

    def append_assistant(self, fragment: str) -> Message:
        if self.slot is ReplySlot.NO_OPEN:
            self._open_reply = Message(role="assistant", content="")
            self.messages.append(self._open_reply)
            self.slot = ReplySlot.OPEN
        self._open_reply.content += fragment
        return self._open_reply

    def close_reply(self):
        self.slot = ReplySlot.NO_OPEN
        self._open_reply = None

    def discard_empty_reply(self) -> bool:
        """Drop the open reply if nothing was streamed into it; close it either way."""
        removed = False
        reply = self._open_reply
        if reply is not None and reply.content == "":
            self.messages = [m for m in self.messages if m.id != reply.id]
            removed = True
            logger.info("Discarded empty assistant reply after failed turn")
        self.close_reply()
        return removed

    @property
    def open_reply(self) -> Optional[Message]:
        return self._open_reply

    def to_payload(self) -> List[Dict[str, str]]:
        return [m.to_payload() for m in self.messages]

    def __len__(self):
        return len(self.messages)
