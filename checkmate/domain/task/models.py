"""Task domain models.

The Task aggregate and the value objects it owns: skip state, comments and
focus sessions. Uses Pydantic for serialization; every model is frozen and
every lifecycle operation returns a new snapshot via ``model_copy``.

Lifecycle: active -> completed | canceled (terminal). Terminal tasks are
read-only. Recurring templates never move and never accrue sessions; they
only spawn instances.
"""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from checkmate.domain.shared.errors import (
    DomainValidationError,
    InvalidStateError,
    NotFoundError,
)
from checkmate.domain.types import (
    TagPoints,
    TaskLocation,
    new_id,
    non_empty,
    start_of_next_day,
    utc_now,
)

# Manual (backdated) sessions longer than this are rejected as data-entry mistakes
MAX_MANUAL_SESSION = timedelta(hours=12)


class TaskStatus(str, Enum):
    """Status of a task."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELED = "canceled"


class SkipType(str, Enum):
    """Kind of temporary deprioritization."""

    FOR_NOW = "for_now"
    FOR_DAY = "for_day"


class SessionStatus(str, Enum):
    """Status of a focus session."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class FocusLevel(str, Enum):
    """Self-reported focus quality of a finished session."""

    DISTRACTED = "distracted"
    NEUTRAL = "neutral"
    FOCUSED = "focused"


# =============================================================================
# Skip State
# =============================================================================


class SkipState(BaseModel):
    """Temporary deprioritization of an active task.

    ``for_now`` simply pushes the task below unskipped work. ``for_day``
    hides the task until ``return_at`` (the next midnight) and always points
    at the justification comment written when the skip was made. Once the
    return time passes and is observed, ``returned`` flips to True and the
    task floats to the top of the queue.
    """

    type: SkipType
    skipped_at: datetime
    return_at: datetime | None = None
    justification_comment_id: str | None = None
    returned: bool = False

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _validate(self) -> "SkipState":
        if self.type == SkipType.FOR_DAY:
            if self.return_at is None:
                raise ValueError("Skip for day requires a return time")
            if not self.justification_comment_id:
                raise ValueError("Skip for day requires a justification comment")
        return self

    @classmethod
    def for_now(cls, now: datetime) -> "SkipState":
        return cls(type=SkipType.FOR_NOW, skipped_at=now)

    @classmethod
    def for_day(cls, justification_comment_id: str, now: datetime) -> "SkipState":
        comment_id = non_empty(
            justification_comment_id,
            "Justification comment ID is required for skip for day",
        )
        return cls(
            type=SkipType.FOR_DAY,
            skipped_at=now,
            return_at=start_of_next_day(now),
            justification_comment_id=comment_id,
        )

    @property
    def is_for_day(self) -> bool:
        return self.type == SkipType.FOR_DAY

    @property
    def is_hidden(self) -> bool:
        """True while a for_day skip has not yet come back."""
        return self.is_for_day and not self.returned

    @property
    def has_returned(self) -> bool:
        return self.is_for_day and self.returned

    def should_return(self, now: datetime) -> bool:
        """True once a for_day skip's return time has been reached."""
        if not self.is_for_day or self.return_at is None:
            return False
        return now >= self.return_at

    def mark_returned(self) -> "SkipState":
        return self.model_copy(update={"returned": True})


# =============================================================================
# Comment
# =============================================================================


class Comment(BaseModel):
    """A note attached to a task.

    Justification comments are flagged so they can be shown differently
    and so the for_day skip that depends on one can find it.
    """

    id: str = Field(default_factory=lambda: new_id("comment"))
    content: str
    created_at: datetime
    updated_at: datetime | None = None
    is_skip_justification: bool = False
    is_cancel_justification: bool = False

    model_config = {"frozen": True}

    @classmethod
    def create(
        cls,
        content: str,
        now: datetime,
        *,
        skip_justification: bool = False,
        cancel_justification: bool = False,
    ) -> "Comment":
        return cls(
            content=non_empty(content, "Comment content cannot be empty"),
            created_at=now,
            is_skip_justification=skip_justification,
            is_cancel_justification=cancel_justification,
        )

    def edit(self, content: str, now: datetime) -> "Comment":
        return self.model_copy(
            update={
                "content": non_empty(content, "Comment content cannot be empty"),
                "updated_at": now,
            }
        )


# =============================================================================
# Focus Session
# =============================================================================


class Session(BaseModel):
    """A bounded period of focused work on one task."""

    id: str = Field(default_factory=lambda: new_id("session"))
    status: SessionStatus = SessionStatus.IN_PROGRESS
    started_at: datetime
    ended_at: datetime | None = None
    focus_level: FocusLevel | None = None
    note: str | None = None
    is_manual: bool = False

    model_config = {"frozen": True}

    @classmethod
    def start(cls, now: datetime) -> "Session":
        return cls(started_at=now)

    @classmethod
    def manual(
        cls,
        started_at: datetime,
        ended_at: datetime,
        focus_level: FocusLevel,
        note: str | None = None,
    ) -> "Session":
        """Create an already-completed, backdated session.

        Raises:
            DomainValidationError: If the end is not after the start or the
                duration exceeds MAX_MANUAL_SESSION.
        """
        if ended_at <= started_at:
            raise DomainValidationError("End time must be after start time")
        if ended_at - started_at > MAX_MANUAL_SESSION:
            hours = int(MAX_MANUAL_SESSION.total_seconds() // 3600)
            raise DomainValidationError(f"Manual sessions cannot be longer than {hours} hours")
        return cls(
            status=SessionStatus.COMPLETED,
            started_at=started_at,
            ended_at=ended_at,
            focus_level=FocusLevel(focus_level),
            note=(note or "").strip() or None,
            is_manual=True,
        )

    @property
    def is_in_progress(self) -> bool:
        return self.status == SessionStatus.IN_PROGRESS

    @property
    def duration_seconds(self) -> int:
        """Whole seconds between start and end, 0 while still running."""
        if self.ended_at is None:
            return 0
        return int((self.ended_at - self.started_at).total_seconds())

    def complete(self, focus_level: FocusLevel, now: datetime, note: str | None = None) -> "Session":
        if not self.is_in_progress:
            raise InvalidStateError("Can only complete an in-progress session")
        return self.model_copy(
            update={
                "status": SessionStatus.COMPLETED,
                "ended_at": now,
                "focus_level": FocusLevel(focus_level),
                "note": (note or "").strip() or self.note,
            }
        )

    def abandon(self, now: datetime) -> "Session":
        if not self.is_in_progress:
            raise InvalidStateError("Can only abandon an in-progress session")
        return self.model_copy(update={"status": SessionStatus.ABANDONED, "ended_at": now})


# =============================================================================
# Task Aggregate
# =============================================================================


class Task(BaseModel):
    """A unit of work.

    Templates (``recurrence`` set) and instances (``parent_id`` set) are
    mutually exclusive. ``sprint_history`` lists every sprint the task has
    left, oldest first. ``order`` is the user's manual display order.
    """

    id: str = Field(default_factory=lambda: new_id("task"))
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.ACTIVE
    tag_points: TagPoints
    location: TaskLocation = Field(default_factory=TaskLocation.backlog)
    created_at: datetime
    completed_at: datetime | None = None
    canceled_at: datetime | None = None
    skip_state: SkipState | None = None
    recurrence: str | None = None
    parent_id: str | None = None
    occurrence_at: datetime | None = None
    comments: list[Comment] = Field(default_factory=list)
    sessions: list[Session] = Field(default_factory=list)
    sprint_history: list[str] = Field(default_factory=list)
    order: int = 0

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _validate(self) -> "Task":
        if self.recurrence is not None and self.parent_id is not None:
            raise ValueError("A task cannot be both a recurring template and a recurring instance")
        if self.occurrence_at is not None and self.parent_id is None:
            raise ValueError("Only recurring instances carry an occurrence time")
        return self

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        title: str,
        tag_points: dict[str, int],
        *,
        description: str = "",
        recurrence: str | None = None,
        order: int = 0,
        now: datetime | None = None,
    ) -> "Task":
        """Create an active task in the backlog.

        Args:
            title: Non-empty title (trimmed).
            tag_points: Tag id -> Fibonacci points, at least one entry.
            description: Optional free text.
            recurrence: Opaque recurrence rule; makes the task a template.
            order: Display order within its list.
            now: Creation time, defaults to the current UTC time.

        Raises:
            DomainValidationError: On an empty title, an empty allocation,
                a non-Fibonacci point value or a blank recurrence rule.
        """
        clean_title = non_empty(title, "Task title cannot be empty")
        effort = TagPoints.create(tag_points)
        rule = None
        if recurrence is not None:
            rule = non_empty(recurrence, "Recurrence rule cannot be empty")
        return cls(
            title=clean_title,
            description=(description or "").strip(),
            tag_points=effort,
            created_at=now or utc_now(),
            recurrence=rule,
            order=order,
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.status == TaskStatus.ACTIVE

    @property
    def is_recurring_template(self) -> bool:
        return self.recurrence is not None

    @property
    def is_recurring_instance(self) -> bool:
        return self.parent_id is not None

    @property
    def total_points(self) -> int:
        return self.tag_points.total

    @property
    def active_session(self) -> Session | None:
        """The in-progress session, if any."""
        for session in self.sessions:
            if session.is_in_progress:
                return session
        return None

    def find_comment(self, comment_id: str) -> Comment:
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
        raise NotFoundError("Comment", comment_id)

    def find_session(self, session_id: str) -> Session:
        for session in self.sessions:
            if session.id == session_id:
                return session
        raise NotFoundError("Session", session_id)

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _ensure_active(self, action: str = "modify") -> None:
        if not self.is_active:
            raise InvalidStateError(f"Cannot {action} a task that is {self.status.value}")

    def _ensure_not_template(self, action: str) -> None:
        if self.is_recurring_template:
            raise InvalidStateError(f"Cannot {action} a recurring template")

    # -------------------------------------------------------------------------
    # Field Updates
    # -------------------------------------------------------------------------

    def update_title(self, title: str) -> "Task":
        self._ensure_active()
        return self.model_copy(update={"title": non_empty(title, "Task title cannot be empty")})

    def update_description(self, description: str) -> "Task":
        self._ensure_active()
        return self.model_copy(update={"description": (description or "").strip()})

    def update_effort(self, tag_points: dict[str, int]) -> "Task":
        """Replace the whole allocation."""
        self._ensure_active()
        return self.model_copy(update={"tag_points": TagPoints.create(tag_points)})

    def set_tag_points(self, tag_id: str, points: int) -> "Task":
        self._ensure_active()
        return self.model_copy(update={"tag_points": self.tag_points.with_tag(tag_id, points)})

    def remove_tag(self, tag_id: str) -> "Task":
        self._ensure_active()
        return self.model_copy(update={"tag_points": self.tag_points.without_tag(tag_id)})

    def reorder(self, order: int) -> "Task":
        self._ensure_active()
        return self.model_copy(update={"order": order})

    # -------------------------------------------------------------------------
    # Status Transitions
    # -------------------------------------------------------------------------

    def complete(self, now: datetime | None = None) -> "Task":
        self._ensure_active("complete")
        return self.model_copy(
            update={
                "status": TaskStatus.COMPLETED,
                "completed_at": now or utc_now(),
                "skip_state": None,
            }
        )

    def cancel(self, justification: str | None = None, now: datetime | None = None) -> "Task":
        """Cancel the task, optionally recording why.

        A supplied justification must not be blank; it is appended as a
        cancel-justification comment.
        """
        self._ensure_active("cancel")
        when = now or utc_now()
        comments = self.comments
        if justification is not None:
            reason = non_empty(justification, "Cancellation justification cannot be empty")
            comments = [*comments, Comment.create(reason, when, cancel_justification=True)]
        return self.model_copy(
            update={
                "status": TaskStatus.CANCELED,
                "canceled_at": when,
                "skip_state": None,
                "comments": comments,
            }
        )

    # -------------------------------------------------------------------------
    # Location
    # -------------------------------------------------------------------------

    def _history_after_leaving(self) -> list[str]:
        if self.location.is_sprint and self.location.sprint_id:
            return [*self.sprint_history, self.location.sprint_id]
        return list(self.sprint_history)

    def move_to_sprint(self, sprint_id: str) -> "Task":
        self._ensure_active("move")
        self._ensure_not_template("move")
        target = TaskLocation.sprint(sprint_id)
        history = self.sprint_history if target == self.location else self._history_after_leaving()
        return self.model_copy(
            update={"location": target, "sprint_history": history, "skip_state": None}
        )

    def move_to_backlog(self) -> "Task":
        self._ensure_active("move")
        self._ensure_not_template("move")
        return self.model_copy(
            update={
                "location": TaskLocation.backlog(),
                "sprint_history": self._history_after_leaving(),
                "skip_state": None,
            }
        )

    # -------------------------------------------------------------------------
    # Skip State
    # -------------------------------------------------------------------------

    def skip_for_now(self, now: datetime | None = None) -> "Task":
        self._ensure_active("skip")
        return self.model_copy(update={"skip_state": SkipState.for_now(now or utc_now())})

    def skip_for_day(self, justification: str, now: datetime | None = None) -> "Task":
        """Hide the task until the next midnight.

        The justification is appended as a skip-justification comment, and
        the new skip state points at it.
        """
        self._ensure_active("skip")
        reason = non_empty(justification, "Justification is required for skip for day")
        when = now or utc_now()
        comment = Comment.create(reason, when, skip_justification=True)
        return self.model_copy(
            update={
                "comments": [*self.comments, comment],
                "skip_state": SkipState.for_day(comment.id, when),
            }
        )

    def clear_skip_state(self) -> "Task":
        if self.skip_state is None:
            return self
        return self.model_copy(update={"skip_state": None})

    def check_and_mark_skip_return(self, now: datetime) -> tuple["Task", bool]:
        """Mark a for_day skip as returned once its return time has passed.

        Returns:
            The (possibly updated) task and whether the transition happened
            on this call. A skip already marked returned reports False.
        """
        skip = self.skip_state
        if skip is None or skip.returned or not skip.should_return(now):
            return self, False
        return self.model_copy(update={"skip_state": skip.mark_returned()}), True

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    def add_comment(self, content: str, now: datetime | None = None) -> "Task":
        self._ensure_active("comment on")
        comment = Comment.create(content, now or utc_now())
        return self.model_copy(update={"comments": [*self.comments, comment]})

    def update_comment(self, comment_id: str, content: str, now: datetime | None = None) -> "Task":
        self._ensure_active()
        edited = self.find_comment(comment_id).edit(content, now or utc_now())
        comments = [edited if c.id == comment_id else c for c in self.comments]
        return self.model_copy(update={"comments": comments})

    def delete_comment(self, comment_id: str) -> "Task":
        self._ensure_active()
        self.find_comment(comment_id)
        skip = self.skip_state
        if skip is not None and skip.is_for_day and skip.justification_comment_id == comment_id:
            raise InvalidStateError("Cannot delete the justification of an active skip for day")
        return self.model_copy(
            update={"comments": [c for c in self.comments if c.id != comment_id]}
        )

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    def start_session(self, now: datetime | None = None) -> "Task":
        self._ensure_active("start a session on")
        self._ensure_not_template("start a session on")
        if self.active_session is not None:
            raise InvalidStateError("A session is already in progress for this task")
        return self.model_copy(
            update={"sessions": [*self.sessions, Session.start(now or utc_now())]}
        )

    def _replace_session(self, updated: Session) -> "Task":
        sessions = [updated if s.id == updated.id else s for s in self.sessions]
        return self.model_copy(update={"sessions": sessions})

    def complete_session(
        self,
        session_id: str,
        focus_level: FocusLevel,
        now: datetime | None = None,
        note: str | None = None,
    ) -> "Task":
        self._ensure_active()
        session = self.find_session(session_id)
        return self._replace_session(session.complete(focus_level, now or utc_now(), note))

    def abandon_session(self, session_id: str, now: datetime | None = None) -> "Task":
        self._ensure_active()
        session = self.find_session(session_id)
        return self._replace_session(session.abandon(now or utc_now()))

    def add_manual_session(
        self,
        started_at: datetime,
        ended_at: datetime,
        focus_level: FocusLevel,
        note: str | None = None,
    ) -> "Task":
        self._ensure_active("add a session to")
        self._ensure_not_template("add a session to")
        session = Session.manual(started_at, ended_at, focus_level, note)
        return self.model_copy(update={"sessions": [*self.sessions, session]})

    # -------------------------------------------------------------------------
    # Recurrence
    # -------------------------------------------------------------------------

    def spawn_instance(
        self,
        now: datetime | None = None,
        occurrence_at: datetime | None = None,
    ) -> "Task":
        """Create a concrete backlog task from this template.

        ``occurrence_at`` is the scheduled occurrence the instance stands for;
        on-demand instances leave it unset.

        Raises:
            InvalidStateError: If this task is not a recurring template.
        """
        if not self.is_recurring_template:
            raise InvalidStateError("Can only spawn instances from recurring templates")
        return Task(
            title=self.title,
            description=self.description,
            tag_points=TagPoints.create(self.tag_points.to_dict()),
            created_at=now or utc_now(),
            parent_id=self.id,
            occurrence_at=occurrence_at,
        )
