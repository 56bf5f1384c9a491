"""Synapse database layer."""

from synapse.db.connection import Database
from synapse.db.migrations import MIGRATIONS, run_migrations
from synapse.db.models import ContentItem, ContentKind
from synapse.db.repository import ItemStore, Repository
from synapse.db.schema import initialize

__all__ = [
    "ContentItem",
    "ContentKind",
    "Database",
    "ItemStore",
    "Repository",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
]
