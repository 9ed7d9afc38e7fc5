"""Profile and decision stores."""

from counsel.stores.base import DecisionStore, ProfileDocument, ProfileStore
from counsel.stores.decision import SqliteDecisionStore
from counsel.stores.profile import MarkdownProfileStore

__all__ = [
    "DecisionStore",
    "MarkdownProfileStore",
    "ProfileDocument",
    "ProfileStore",
    "SqliteDecisionStore",
]
