"""Live session domain models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_OWNER_ID = "anonymous"
DEFAULT_TITLE = "Live Stream"
DEFAULT_COMMENT_CAPACITY = 50


class Comment(BaseModel):
    """A chat comment on a live session. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    # Epoch milliseconds of creation; for display, not guaranteed unique
    id: str
    author_name: str
    text: str
    created_at: datetime


class LiveSession(BaseModel):
    """Live-lifecycle record for one broadcasting channel."""

    channel_name: str
    owner_id: str = DEFAULT_OWNER_ID
    owner_display_name: str
    title: str = DEFAULT_TITLE
    thumbnail_ref: str = ""

    viewer_count: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)
    comments: list[Comment] = Field(default_factory=list)

    is_live: bool = True
    started_at: datetime
    last_activity_at: datetime


class EndSessionResult(BaseModel):
    channel_name: str
    duration_ms: int
    final_viewer_count: int
