import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from app import config
from app.api.dependencies import get_agent
from app.auth import require_token
from llm.trip_agent import TripChatAgent

logger = logging.getLogger(__name__)

router = APIRouter()

GENERIC_ERROR = "Something went wrong"


class ChatRequest(BaseModel):
    """Question from one user about the uploaded trip data."""

    model_config = ConfigDict(populate_by_name=True)

    question: Optional[str] = Field(default=None, description="Natural language question about the trips.")
    user_id: Optional[str] = Field(
        default=None,
        alias="userId",
        description="Caller identifier; each user id has its own conversation memory.",
    )


class ChatResponse(BaseModel):
    answer: str


async def _answer(agent: TripChatAgent, payload: Optional[ChatRequest], top_k: int, route: str):
    question = payload.question if payload else None
    user_id = payload.user_id if payload else None

    try:
        agent.validate(question, user_id)
    except ValueError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    try:
        result = await agent.answer(question=question, user_id=user_id, top_k=top_k)
    except Exception:
        logger.exception("Error in %s", route)
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})

    return ChatResponse(answer=result.answer)


@router.post("/chat", response_model=ChatResponse, dependencies=[Depends(require_token)])
async def chat(
    payload: Optional[ChatRequest] = None,
    agent: TripChatAgent = Depends(get_agent),
):
    """
    Ask a question over the uploaded trips.

    JSON body: { "question": "...", "userId": "..." }. Earlier questions and
    answers of the same userId are replayed as conversation memory.
    """
    return await _answer(agent, payload, config.CHAT_TOP_K, "/chat")


@router.post("/chat2", response_model=ChatResponse, deprecated=True)
async def chat2(
    payload: Optional[ChatRequest] = None,
    agent: TripChatAgent = Depends(get_agent),
):
    """Deprecated alias of /chat without the bearer gate; retrieves fewer rows."""
    return await _answer(agent, payload, config.CHAT2_TOP_K, "/chat2")
