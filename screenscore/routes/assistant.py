from fastapi import APIRouter, Depends
from typing import List

from screenscore.schemas.assistant import ChatReply, ChatRequest, QuizAnswers, QuizRecommendation
from screenscore.services.assistant_service import MovieAssistant, get_assistant

router = APIRouter(prefix="/api", tags=["Assistant"])


@router.post("/chatbot", response_model=ChatReply)
def chat_with_guide(
    conversation: ChatRequest,
    assistant: MovieAssistant = Depends(get_assistant)
):
    """
    Talk to the Movie Guide

    Send the whole conversation each time (**messages**, oldest first, roles
    "user" and "assistant"); the reply is the guide's next turn.
    """
    return ChatReply(reply=assistant.chat(conversation.messages))


@router.post("/quiz", response_model=List[QuizRecommendation])
def recommend_from_quiz(
    answers: QuizAnswers,
    assistant: MovieAssistant = Depends(get_assistant)
):
    """Three movie picks from genre, mood, decade, actor and language answers"""
    return assistant.recommend_from_quiz(answers)
