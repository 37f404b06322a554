"""
All database models. Imported here so Base.metadata sees them for create_all().
"""

from .base import RecordBase
from .document import Document
from .persona import Persona
from .analysis import Analysis
from .search_result import SearchResult

__all__ = [
    "RecordBase",
    "Document",
    "Persona",
    "Analysis",
    "SearchResult",
]
