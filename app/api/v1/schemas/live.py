from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_serializer

from app.domain.live.session.session_models import Comment, LiveSession


def serialize_utc_datetime(dt: datetime) -> str:
    """ISO 8601 with an explicit UTC offset; naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


class StartSessionIn(BaseModel):
    # Emptiness is checked by the registry so both fields report E_INVALID_REQUEST
    channel_name: str | None = Field(default=None, description="Channel to go live on")
    owner_display_name: str | None = Field(default=None, description="Display name of the host")
    owner_id: str | None = Field(default=None, description="Host user id, defaults to anonymous")
    title: str | None = Field(default=None, description="Title shown to viewers")
    thumbnail_ref: str | None = Field(default=None, description="URL of the thumbnail image")


class EndSessionIn(BaseModel):
    channel_name: str = Field(description="Channel whose live session ends")


class UpdateViewersIn(BaseModel):
    channel_name: str
    increment: bool = Field(description="True when a viewer joins, False when one leaves")


class AddCommentIn(BaseModel):
    channel_name: str
    author_name: str | None = Field(default=None, description="Display name of the commenter")
    text: str | None = Field(default=None, description="Comment body")


class LikeIn(BaseModel):
    channel_name: str


class CommentOut(BaseModel):
    id: str
    author_name: str
    text: str
    created_at: datetime

    @field_serializer("created_at")
    @classmethod
    def serialize_datetime(cls, v: datetime) -> str:
        return serialize_utc_datetime(v)

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentOut":
        return cls(
            id=comment.id,
            author_name=comment.author_name,
            text=comment.text,
            created_at=comment.created_at,
        )


class LiveSessionOut(BaseModel):
    channel_name: str
    owner_id: str
    owner_display_name: str
    title: str
    thumbnail_ref: str
    viewer_count: int
    like_count: int
    comments: list[CommentOut]
    is_live: bool
    started_at: datetime

    @field_serializer("started_at")
    @classmethod
    def serialize_datetime(cls, v: datetime) -> str:
        return serialize_utc_datetime(v)

    @classmethod
    def from_session(cls, session: LiveSession) -> "LiveSessionOut":
        return cls(
            channel_name=session.channel_name,
            owner_id=session.owner_id,
            owner_display_name=session.owner_display_name,
            title=session.title,
            thumbnail_ref=session.thumbnail_ref,
            viewer_count=session.viewer_count,
            like_count=session.like_count,
            comments=[CommentOut.from_comment(c) for c in session.comments],
            is_live=session.is_live,
            started_at=session.started_at,
        )


class EndSessionOut(BaseModel):
    channel_name: str
    duration_ms: int
    final_viewer_count: int


class ListActiveOut(BaseModel):
    sessions: list[LiveSessionOut]
    count: int


class UpdateViewersOut(BaseModel):
    channel_name: str
    viewer_count: int


class ListCommentsOut(BaseModel):
    channel_name: str
    comments: list[CommentOut]


class LikeOut(BaseModel):
    channel_name: str
    like_count: int
