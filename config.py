"""Configuration for the search widget core and its development endpoint"""

import os
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from typeahead.search_models import SearchResult

# Load environment variables from .env file
load_dotenv()

# Widget defaults
API_URL = os.getenv("TYPEAHEAD_API_URL", "http://localhost:8000/api/search")
MIN_QUERY_LENGTH = int(os.getenv("TYPEAHEAD_MIN_QUERY_LENGTH", "3"))
DEBOUNCE_MS = int(os.getenv("TYPEAHEAD_DEBOUNCE_MS", "300"))
MAX_RESULTS = int(os.getenv("TYPEAHEAD_MAX_RESULTS", "10"))
CACHE_TTL_MS = int(os.getenv("TYPEAHEAD_CACHE_TTL_MS", "60000"))
CACHE_CAPACITY = int(os.getenv("TYPEAHEAD_CACHE_CAPACITY", "100"))
REQUEST_TIMEOUT_MS = int(os.getenv("TYPEAHEAD_REQUEST_TIMEOUT_MS", "5000"))
MAX_RETRIES = int(os.getenv("TYPEAHEAD_MAX_RETRIES", "2"))
BACKOFF_INITIAL_MS = 500
BACKOFF_MAX_MS = 4000

# Development search endpoint
SEED_FILE = os.getenv("SEED_FILE", "data/seed.jsonl")
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))


class WidgetConfig(BaseModel):
    """Options accepted when constructing a widget controller"""
    api_url: str = Field(API_URL, description="Search endpoint URL")
    min_query_length: int = Field(MIN_QUERY_LENGTH, ge=1)
    debounce_ms: int = Field(DEBOUNCE_MS, ge=0)
    max_results: int = Field(MAX_RESULTS, ge=1, le=50)
    cache_ttl_ms: int = Field(CACHE_TTL_MS, ge=0)
    cache_capacity: int = Field(CACHE_CAPACITY, ge=1)
    request_timeout_ms: int = Field(REQUEST_TIMEOUT_MS, gt=0)
    max_retries: int = Field(MAX_RETRIES, ge=0)
    backoff_initial_ms: int = Field(BACKOFF_INITIAL_MS, ge=0)
    backoff_max_ms: int = Field(BACKOFF_MAX_MS, ge=0)

    on_select: Optional[Callable[[SearchResult], Any]] = None
    render_result: Optional[Callable[[SearchResult], str]] = None

    class Config:
        extra = "forbid"
