"""
Assistant Schemas - Movie Guide chat and the recommendation quiz
"""

from pydantic import Field
from typing import List, Literal

from screenscore.schemas.common import CamelModel

MAX_HISTORY = 50
MAX_MESSAGE_LENGTH = 2000


class ChatMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)


class ChatRequest(CamelModel):
    """Whole conversation so far, oldest first. Empty asks the guide to open the chat."""
    messages: List[ChatMessage] = Field(default_factory=list, max_length=MAX_HISTORY)


class ChatReply(CamelModel):
    reply: str


class QuizAnswers(CamelModel):
    genre: str = Field(..., max_length=100)
    mood: str = Field(..., max_length=100)
    decade: str = Field(..., max_length=20)
    actor: str = Field(..., max_length=100)
    language: str = Field(..., max_length=50)


class QuizRecommendation(CamelModel):
    title: str
    year: int
    reason: str


class QuizResult(CamelModel):
    """Shape the model is asked to answer in"""
    recommendations: List[QuizRecommendation] = []
