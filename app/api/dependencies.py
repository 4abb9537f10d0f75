"""
FastAPI dependencies — trip store and chat agent held on the app state.
"""
from __future__ import annotations

from fastapi import HTTPException, Request

from llm.trip_agent import TripChatAgent
from trips.store import TripStore


def get_trip_store(request: Request) -> TripStore:
    store = getattr(request.app.state, "trip_store", None)
    if store is None:
        raise HTTPException(503, "Server not initialized yet")
    return store


def get_agent(request: Request) -> TripChatAgent:
    agent = getattr(request.app.state, "agent", None)
    if agent is None:
        raise HTTPException(503, "Server not initialized yet")
    return agent
