"""Core business services."""
from .change_detector import ChangeDetector
from .ingest_service import IngestReport, IngestService
from .search_service import SearchService

__all__ = [
    "ChangeDetector",
    "IngestReport",
    "IngestService",
    "SearchService",
]
