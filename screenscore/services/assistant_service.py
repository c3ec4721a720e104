from openai import OpenAI, OpenAIError
from functools import lru_cache
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from pydantic import ValidationError
import os
import logging

from screenscore.schemas.assistant import ChatMessage, QuizAnswers, QuizRecommendation, QuizResult

logger = logging.getLogger(__name__)

QUIZ_RECOMMENDATIONS = 3
FALLBACK_REPLY = "Sorry, I can't come up with an answer right now. Please try again in a moment."

GUIDE_PROMPT = """You are "Movie Guide", a friendly movie recommendation chatbot.
If the conversation is empty, introduce yourself and ask what the user is in the mood for.
Ask short follow-up questions about favorite genres, actors, directors, recent favorites or the mood they want.
Once you know enough, suggest 1 to 3 movies and say in a sentence why each one fits.
Keep every reply brief and conversational."""

QUIZ_PROMPT = """You are a movie recommendation expert. Recommend exactly {count} movies for these quiz answers:
- Favorite genre: {genre}
- Desired mood: {mood}
- Preferred decade: {decade}
- An actor they like: {actor}
- Preferred language: {language}

Answer with JSON only, in the form
{{"recommendations": [{{"title": "...", "year": 1999, "reason": "..."}}]}}"""


class MovieAssistant:
    """
    LLM-backed Movie Guide chat and quiz recommendations.

    Any client exposing the OpenAI `chat.completions.create` call works, so
    tests hand in a stub.
    """

    def __init__(self, client: Any = None, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key if api_key is not None else os.getenv("LLM_API_KEY")
        self.model = model or os.getenv("LLM_MODEL", "gpt-4o-mini")
        if client is None and self.api_key:
            client = OpenAI(api_key=self.api_key, timeout=30)
        self.client = client

    def _complete(self, messages: List[Dict[str, str]], **options) -> str:
        if self.client is None:
            logger.error("LLM_API_KEY is not configured")
            raise HTTPException(status_code=500, detail="Assistant not configured")
        try:
            response = self.client.chat.completions.create(model=self.model, messages=messages, **options)
        except OpenAIError as e:
            logger.error(f"LLM request failed: {str(e)}")
            raise HTTPException(status_code=500, detail="Upstream service unavailable")

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()

    def chat(self, history: List[ChatMessage]) -> str:
        """Next Movie Guide turn for the conversation so far"""
        messages = [{"role": "system", "content": GUIDE_PROMPT}]
        messages += [{"role": m.role, "content": m.content} for m in history]
        reply = self._complete(messages)
        if not reply:
            logger.warning("LLM returned an empty chat reply")
            return FALLBACK_REPLY
        return reply

    def recommend_from_quiz(self, answers: QuizAnswers) -> List[QuizRecommendation]:
        """Three picks for the quiz answers; empty when the model's answer can't be read"""
        prompt = QUIZ_PROMPT.format(count=QUIZ_RECOMMENDATIONS, **answers.model_dump())
        raw = self._complete(
            [{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
        )
        if not raw:
            return []
        try:
            result = QuizResult.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Unreadable quiz answer from LLM: {e.error_count()} errors")
            return []
        return result.recommendations[:QUIZ_RECOMMENDATIONS]


@lru_cache(maxsize=1)
def get_assistant() -> MovieAssistant:
    """Process-wide assistant (FastAPI dependency)"""
    return MovieAssistant()
