"""
Pydantic schemas for API request/response models.
"""

from .song import *
from .search import *
from .submission import *
from .catalog import *
from .ingestion import *
