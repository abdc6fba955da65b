"""Decision log: protocol plus in-memory and SQLite adapters."""

from eva.store.base import DecisionStore, InsertListener
from eva.store.memory import InMemoryDecisionStore
from eva.store.sqlite import SqliteDecisionStore

__all__ = ["DecisionStore", "InMemoryDecisionStore", "InsertListener", "SqliteDecisionStore"]
