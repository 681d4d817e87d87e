from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from enum import Enum


def normalize_query(text: Optional[str]) -> str:
    """Normalized form of the typed text, used as cache key and request payload"""
    return (text or "").strip().casefold()


class SearchResult(BaseModel):
    """Model representing a single search result as returned by the endpoint"""
    id: str
    title: str
    description: Optional[str] = None
    image: Optional[str] = None

    class Config:
        # The endpoint may send more than the widget displays
        extra = "ignore"
        frozen = True

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        # SERIAL primary keys arrive as JSON numbers
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ResultPage(BaseModel):
    """Model representing one page of search results"""
    results: List[SearchResult] = []
    total: int = Field(0, ge=0)
    page: int = Field(1, ge=1)

    class Config:
        extra = "ignore"
        frozen = True


class Status(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    EMPTY = "empty"
    ERROR = "error"


class SelectionState(BaseModel):
    """
    Snapshot the presentation layer renders from.
    Replaced as a whole on every transition, never mutated.
    """
    query: str = ""
    results: List[SearchResult] = []
    status: Status = Status.IDLE
    selected_index: int = -1
    error_message: Optional[str] = None
    total: int = 0

    class Config:
        frozen = True

    @property
    def selected(self) -> Optional[SearchResult]:
        if 0 <= self.selected_index < len(self.results):
            return self.results[self.selected_index]
        return None

    @property
    def is_open(self) -> bool:
        """Whether the popup has anything to show"""
        return self.status in (Status.LOADING, Status.LOADED, Status.EMPTY, Status.ERROR)
