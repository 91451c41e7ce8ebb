"""Live document model and the protocols the engine reads and writes through."""

from .flow import ChangeListener, FlowDocument
from .sync import DocumentAccessor, DocumentMutator

__all__ = [
    "ChangeListener",
    "DocumentAccessor",
    "DocumentMutator",
    "FlowDocument",
]
