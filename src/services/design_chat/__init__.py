"""Streaming design chat: partial-JSON relay and turn orchestration."""

from .event_queue import TurnEventQueue
from .store import ConversationStore, SqlAlchemyConversationStore
from .turn_orchestrator import TurnOrchestrator, TurnState, TurnSummary


__all__ = [
    "ConversationStore",
    "SqlAlchemyConversationStore",
    "TurnEventQueue",
    "TurnOrchestrator",
    "TurnState",
    "TurnSummary",
]
