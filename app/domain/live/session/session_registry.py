"""In-memory registry of live sessions, keyed by channel name.

Locking:
- `_table_lock` guards the dict itself and is held only for lookups,
  inserts, removals and the entry-list copy in `list_active`.
- Each entry has its own lock. Every read-modify-write of a session runs
  entirely under that lock, so concurrent updates on one channel are never
  lost and updates on different channels never wait on each other.
- Lock order is always table lock, then entry lock. Nothing takes the table
  lock while holding an entry lock.
- A removed entry is flagged under its own lock. A mutation that looked the
  entry up before removal either finishes first (and is counted in the end
  result) or sees the flag and reports not found.
"""

import threading
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

from loguru import logger

from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .session_models import (
    DEFAULT_COMMENT_CAPACITY,
    DEFAULT_OWNER_ID,
    DEFAULT_TITLE,
    Comment,
    EndSessionResult,
    LiveSession,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _dt_to_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


class _Entry:
    __slots__ = ("lock", "session", "comments", "removed")

    def __init__(self, session: LiveSession, comment_capacity: int):
        self.lock = threading.Lock()
        self.session = session
        self.comments: deque[Comment] = deque(maxlen=comment_capacity)
        self.removed = False

    def snapshot(self) -> LiveSession:
        # Caller holds self.lock
        return self.session.model_copy(update={"comments": list(self.comments)})


class SessionRegistry:
    """Owns every live session of the process.

    Construct once per application and inject it; there is no module-level
    instance.
    """

    def __init__(
        self,
        comment_capacity: int = DEFAULT_COMMENT_CAPACITY,
        clock: Callable[[], datetime] = utc_now,
    ):
        if comment_capacity <= 0:
            raise ValueError(f"comment_capacity must be > 0 (got {comment_capacity})")

        self._table: dict[str, _Entry] = {}
        self._table_lock = threading.Lock()
        self._comment_capacity = comment_capacity
        self._clock = clock

    @property
    def comment_capacity(self) -> int:
        return self._comment_capacity

    def _not_found(self, channel_name: str) -> AppError:
        return AppError(
            errcode=AppErrorCode.E_SESSION_NOT_FOUND,
            errmesg=f"Live session not found: {channel_name}",
            status_code=HttpStatusCode.NOT_FOUND,
        )

    @contextmanager
    def _locked(self, channel_name: str) -> Iterator[_Entry]:
        """Yield the live entry for a channel with its lock held."""
        with self._table_lock:
            entry = self._table.get(channel_name)
        if entry is None:
            raise self._not_found(channel_name)

        with entry.lock:
            if entry.removed:
                raise self._not_found(channel_name)
            yield entry

    # ==================== LIFECYCLE ====================

    def start(
        self,
        channel_name: str,
        owner_display_name: str,
        owner_id: str | None = None,
        title: str | None = None,
        thumbnail_ref: str | None = None,
    ) -> LiveSession:
        """Create the live session for a channel.

        An existing session on the same channel is replaced, including its
        viewers, likes and comments (last start wins).

        Raises:
            AppError: E_INVALID_REQUEST if channel_name or owner_display_name is empty
        """
        if not channel_name or not owner_display_name:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Channel name and owner display name are required",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        now = self._clock()
        entry = _Entry(
            LiveSession(
                channel_name=channel_name,
                owner_id=owner_id or DEFAULT_OWNER_ID,
                owner_display_name=owner_display_name,
                title=title or DEFAULT_TITLE,
                thumbnail_ref=thumbnail_ref or "",
                started_at=now,
                last_activity_at=now,
            ),
            self._comment_capacity,
        )

        with self._table_lock:
            previous = self._table.get(channel_name)
            self._table[channel_name] = entry

        if previous is not None:
            with previous.lock:
                previous.removed = True
            logger.warning("Live session {} restarted; previous record discarded", channel_name)
        else:
            logger.info("Live session {} started by {}", channel_name, entry.session.owner_id)

        with entry.lock:
            return entry.snapshot()

    def end(self, channel_name: str) -> EndSessionResult:
        """Remove a channel's live session.

        Raises:
            AppError: E_SESSION_NOT_FOUND if the channel has no live session
        """
        with self._table_lock:
            entry = self._table.pop(channel_name, None)
        if entry is None:
            raise self._not_found(channel_name)

        with entry.lock:
            entry.removed = True
            entry.session.is_live = False
            duration = self._clock() - entry.session.started_at
            result = EndSessionResult(
                channel_name=channel_name,
                duration_ms=max(0, int(duration / timedelta(milliseconds=1))),
                final_viewer_count=entry.session.viewer_count,
            )

        logger.info(
            "Live session {} ended: duration_ms={} final_viewers={}",
            channel_name,
            result.duration_ms,
            result.final_viewer_count,
        )
        return result

    # ==================== MUTATIONS ====================

    def adjust_viewers(self, channel_name: str, increment: bool = True) -> int:
        """Add or remove one viewer. The count never drops below zero."""
        with self._locked(channel_name) as entry:
            session = entry.session
            session.viewer_count = max(0, session.viewer_count + (1 if increment else -1))
            session.last_activity_at = self._clock()
            return session.viewer_count

    def like(self, channel_name: str) -> int:
        with self._locked(channel_name) as entry:
            session = entry.session
            session.like_count += 1
            session.last_activity_at = self._clock()
            return session.like_count

    def add_comment(self, channel_name: str, author_name: str, text: str) -> Comment:
        """Append a comment, evicting the oldest once over capacity.

        Raises:
            AppError: E_INVALID_REQUEST if author_name or text is empty,
                E_SESSION_NOT_FOUND if the channel has no live session
        """
        if not author_name or not text:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Author name and comment text are required",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        with self._locked(channel_name) as entry:
            now = self._clock()
            comment = Comment(
                id=str(_dt_to_ms(now)),
                author_name=author_name,
                text=text,
                created_at=now,
            )
            entry.comments.append(comment)
            entry.session.last_activity_at = now
            return comment

    # ==================== QUERIES ====================

    def get(self, channel_name: str) -> LiveSession:
        with self._locked(channel_name) as entry:
            return entry.snapshot()

    def list_comments(self, channel_name: str) -> list[Comment]:
        """Comments of a channel, oldest first."""
        with self._locked(channel_name) as entry:
            return list(entry.comments)

    def list_active(self) -> list[LiveSession]:
        """Snapshot of every live session, most recently started first.

        Sessions started at the same instant are ordered by channel name.
        """
        with self._table_lock:
            entries = list(self._table.values())

        sessions = []
        for entry in entries:
            with entry.lock:
                if not entry.removed:
                    sessions.append(entry.snapshot())

        sessions.sort(key=lambda s: s.channel_name)
        sessions.sort(key=lambda s: s.started_at, reverse=True)
        return sessions

    def count(self) -> int:
        with self._table_lock:
            return len(self._table)

    # ==================== MAINTENANCE ====================

    def reap_idle(self, max_idle_seconds: float) -> list[str]:
        """Remove sessions with no activity for longer than `max_idle_seconds`.

        Returns:
            Channel names that were removed
        """
        cutoff = self._clock() - timedelta(seconds=max_idle_seconds)
        reaped = []

        with self._table_lock:
            for channel_name, entry in list(self._table.items()):
                with entry.lock:
                    if entry.session.last_activity_at < cutoff:
                        del self._table[channel_name]
                        entry.removed = True
                        entry.session.is_live = False
                        reaped.append(channel_name)

        for channel_name in reaped:
            logger.warning("Live session {} reaped after {}s idle", channel_name, max_idle_seconds)
        return reaped
