from fastapi import APIRouter, Query

from app.api.v1.dependency import Registry
from app.shared.api.utils import ApiOut
from app.api.v1.schemas.live import (
    AddCommentIn,
    CommentOut,
    EndSessionIn,
    EndSessionOut,
    LikeIn,
    LikeOut,
    ListActiveOut,
    ListCommentsOut,
    LiveSessionOut,
    StartSessionIn,
    UpdateViewersIn,
    UpdateViewersOut,
)

router = APIRouter(prefix="/live", tags=["Live"])


@router.post("/start_session")
async def start_session(payload: StartSessionIn, registry: Registry) -> ApiOut[LiveSessionOut]:
    """Go live on a channel. Restarting a live channel replaces its record."""
    session = registry.start(
        channel_name=payload.channel_name or "",
        owner_display_name=payload.owner_display_name or "",
        owner_id=payload.owner_id,
        title=payload.title,
        thumbnail_ref=payload.thumbnail_ref,
    )

    return ApiOut[LiveSessionOut](results=LiveSessionOut.from_session(session))


@router.post("/end_session")
async def end_session(payload: EndSessionIn, registry: Registry) -> ApiOut[EndSessionOut]:
    result = registry.end(payload.channel_name)

    return ApiOut[EndSessionOut](
        results=EndSessionOut(
            channel_name=result.channel_name,
            duration_ms=result.duration_ms,
            final_viewer_count=result.final_viewer_count,
        )
    )


@router.get("/list_active")
async def list_active(registry: Registry) -> ApiOut[ListActiveOut]:
    """List live sessions, most recently started first."""
    sessions = registry.list_active()

    return ApiOut[ListActiveOut](
        results=ListActiveOut(
            sessions=[LiveSessionOut.from_session(s) for s in sessions],
            count=len(sessions),
        )
    )


@router.get("/get_session")
async def get_session(
    registry: Registry,
    channel_name: str = Query(..., description="Channel name"),
) -> ApiOut[LiveSessionOut]:
    session = registry.get(channel_name)

    return ApiOut[LiveSessionOut](results=LiveSessionOut.from_session(session))


@router.post("/update_viewers")
async def update_viewers(payload: UpdateViewersIn, registry: Registry) -> ApiOut[UpdateViewersOut]:
    """Count a viewer joining (increment=true) or leaving (increment=false)."""
    viewer_count = registry.adjust_viewers(payload.channel_name, increment=payload.increment)

    return ApiOut[UpdateViewersOut](
        results=UpdateViewersOut(channel_name=payload.channel_name, viewer_count=viewer_count)
    )


@router.post("/add_comment")
async def add_comment(payload: AddCommentIn, registry: Registry) -> ApiOut[CommentOut]:
    comment = registry.add_comment(
        payload.channel_name,
        author_name=payload.author_name or "",
        text=payload.text or "",
    )

    return ApiOut[CommentOut](results=CommentOut.from_comment(comment))


@router.get("/list_comments")
async def list_comments(
    registry: Registry,
    channel_name: str = Query(..., description="Channel name"),
) -> ApiOut[ListCommentsOut]:
    """Most recent comments of a live session, oldest first."""
    comments = registry.list_comments(channel_name)

    return ApiOut[ListCommentsOut](
        results=ListCommentsOut(
            channel_name=channel_name,
            comments=[CommentOut.from_comment(c) for c in comments],
        )
    )


@router.post("/like")
async def like(payload: LikeIn, registry: Registry) -> ApiOut[LikeOut]:
    like_count = registry.like(payload.channel_name)

    return ApiOut[LikeOut](results=LikeOut(channel_name=payload.channel_name, like_count=like_count))
