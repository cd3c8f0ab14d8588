"""
Service modules for API business logic.
"""

from .event_manager import EventManager, event_manager
from .ingestion_runner import IngestionRunner, ingestion_runner
