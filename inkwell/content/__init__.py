"""Inkwell content store.

Transactional persistence for posts, users, tags and blog settings.
"""

from .deletion import DeletionOperations
from .exceptions import (
    ContentStoreError,
    NotFoundError,
    PrereadError,
    StatementError,
    StorageUnavailableError,
    TransactionError,
)
from .gateway import WriteGateway
from .insertion import InsertionOperations
from .retrieval import RetrievalOperations
from .services import ContentService
from .update import UpdateOperations

__all__ = [
    "ContentService",
    "ContentStoreError",
    "DeletionOperations",
    "InsertionOperations",
    "NotFoundError",
    "PrereadError",
    "RetrievalOperations",
    "StatementError",
    "StorageUnavailableError",
    "TransactionError",
    "UpdateOperations",
    "WriteGateway",
]
