"""Pydantic models for the Bitbucket Server REST API adapter."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel


def _from_epoch_millis(value: Any) -> Any:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    return value


# Bitbucket sends every timestamp as milliseconds since the epoch.
EpochMillis = Annotated[datetime, BeforeValidator(_from_epoch_millis)]


class _Base(BaseModel):
    """Shared config: camelCase JSON keys, unknown fields silently ignored."""

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)


class Link(_Base):
    href: str
    name: str | None = None


class _Linked(_Base):
    links: dict[str, list[Link]] = Field(default_factory=dict)

    def link(self, rel: str, name: str | None = None) -> str | None:
        """Return the first ``href`` under ``rel``, optionally matching a link name."""
        for link in self.links.get(rel, []):
            if name is None or link.name == name:
                return link.href
        return None


# ----------------------------------------------------------------------
# Enumerations
# ----------------------------------------------------------------------


class UserType(StrEnum):
    normal = "NORMAL"
    service = "SERVICE"


class ProjectType(StrEnum):
    normal = "NORMAL"
    personal = "PERSONAL"


class PullRequestState(StrEnum):
    open = "OPEN"
    declined = "DECLINED"
    merged = "MERGED"
    # Request filter only; never reported on a pull request.
    all = "ALL"


class ParticipantRole(StrEnum):
    author = "AUTHOR"
    reviewer = "REVIEWER"
    participant = "PARTICIPANT"


class ParticipantStatus(StrEnum):
    approved = "APPROVED"
    unapproved = "UNAPPROVED"
    needs_work = "NEEDS_WORK"


class ChangeType(StrEnum):
    add = "ADD"
    delete = "DELETE"
    modify = "MODIFY"
    move = "MOVE"
    copy = "COPY"
    unknown = "UNKNOWN"


class ActivityAction(StrEnum):
    approved = "APPROVED"
    commented = "COMMENTED"
    declined = "DECLINED"
    merged = "MERGED"
    opened = "OPENED"
    reopened = "REOPENED"
    rescoped = "RESCOPED"
    reviewed = "REVIEWED"
    unapproved = "UNAPPROVED"
    updated = "UPDATED"


class TaskState(StrEnum):
    open = "OPEN"
    resolved = "RESOLVED"


# ----------------------------------------------------------------------
# Users, projects, repositories
# ----------------------------------------------------------------------


class User(_Linked):
    name: str
    id: int | None = None
    email_address: str | None = None
    display_name: str | None = None
    active: bool = True
    slug: str | None = None
    type: UserType = UserType.normal


class Project(_Linked):
    key: str
    id: int | None = None
    name: str | None = None
    description: str | None = None
    public: bool = False
    type: ProjectType = ProjectType.normal
    # Only set on personal projects.
    owner: User | None = None


class Repository(_Linked):
    slug: str
    id: int | None = None
    name: str | None = None
    scm_id: str = "git"
    state: str | None = None
    status_message: str | None = None
    forkable: bool = True
    public: bool = False
    project: Project
    # Only set on forks.
    origin: "Repository | None" = None

    def clone_url(self, name: str) -> str | None:
        """Return the clone URL for a protocol name such as ``http`` or ``ssh``."""
        return self.link("clone", name=name)


class Branch(_Base):
    id: str
    display_id: str
    type: str = "BRANCH"
    latest_commit: str | None = None
    latest_changeset: str | None = None
    is_default: bool = False


# ----------------------------------------------------------------------
# Commits
# ----------------------------------------------------------------------


class Person(_Base):
    name: str
    email_address: str | None = None


class Commit(_Base):
    id: str
    display_id: str | None = None
    message: str | None = None
    author: Person | None = None
    author_timestamp: EpochMillis | None = None


class CommitRange(_Base):
    commits: list[Commit] = Field(default_factory=list)
    total: int = 0


# ----------------------------------------------------------------------
# Pull requests
# ----------------------------------------------------------------------


class PullRequestRef(_Base):
    id: str
    display_id: str | None = None
    latest_commit: str | None = None
    repository: Repository | None = None


class PullRequestParticipant(_Base):
    user: User
    role: ParticipantRole
    approved: bool = False
    status: ParticipantStatus = ParticipantStatus.unapproved
    last_reviewed_commit: str | None = None


class PullRequest(_Linked):
    id: int
    version: int = 0
    title: str
    description: str | None = None
    state: PullRequestState
    open: bool = False
    closed: bool = False
    created_date: EpochMillis
    updated_date: EpochMillis | None = None
    closed_date: EpochMillis | None = None
    from_ref: PullRequestRef
    to_ref: PullRequestRef
    locked: bool = False
    author: PullRequestParticipant | None = None
    reviewers: list[PullRequestParticipant] = Field(default_factory=list)
    participants: list[PullRequestParticipant] = Field(default_factory=list)


class ChangePath(_Base):
    components: list[str] = Field(default_factory=list)
    parent: str = ""
    name: str
    extension: str | None = None
    to_string: str

    def __str__(self) -> str:
        return self.to_string


class PullRequestChange(_Linked):
    content_id: str | None = None
    from_content_id: str | None = None
    path: ChangePath
    # Only set for MOVE and COPY changes.
    src_path: ChangePath | None = None
    executable: bool = False
    src_executable: bool = False
    percent_unchanged: int = -1
    type: ChangeType = ChangeType.unknown
    node_type: str = "FILE"


# ----------------------------------------------------------------------
# Tasks and comments
# ----------------------------------------------------------------------


class TaskAnchor(_Base):
    id: int
    type: str = "COMMENT"
    text: str | None = None


class Task(_Linked):
    id: int
    created_date: EpochMillis | None = None
    author: User | None = None
    text: str
    state: TaskState = TaskState.open
    anchor: TaskAnchor | None = None


class Comment(_Base):
    id: int
    version: int = 0
    text: str
    author: User | None = None
    created_date: EpochMillis | None = None
    updated_date: EpochMillis | None = None
    comments: list["Comment"] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)


class CommentAnchor(_Base):
    path: str | None = None
    src_path: str | None = None
    line: int | None = None
    line_type: str | None = None
    file_type: str | None = None
    from_hash: str | None = None
    to_hash: str | None = None
    diff_type: str | None = None


# ----------------------------------------------------------------------
# Pull request activities
# ----------------------------------------------------------------------


class PullRequestActivity(_Base):
    """Common activity record; also used as-is for OPENED, DECLINED and REOPENED."""

    id: int
    created_date: EpochMillis
    user: User
    action: str


class PullRequestCommentActivity(PullRequestActivity):
    comment_action: str
    comment: Comment
    comment_anchor: CommentAnchor | None = None


class PullRequestRescopedActivity(PullRequestActivity):
    from_hash: str
    previous_from_hash: str
    previous_to_hash: str
    to_hash: str
    added: CommitRange = Field(default_factory=CommitRange)
    removed: CommitRange = Field(default_factory=CommitRange)


class PullRequestMergedActivity(PullRequestActivity):
    commit: Commit | None = None


class PullRequestReviewActivity(PullRequestActivity):
    """APPROVED, UNAPPROVED and REVIEWED activities."""

    participant: PullRequestParticipant


class PullRequestUpdatedActivity(PullRequestActivity):
    added_reviewers: list[User] = Field(default_factory=list)
    removed_reviewers: list[User] = Field(default_factory=list)


_ACTIVITY_TAGS = {
    ActivityAction.commented: "comment",
    ActivityAction.rescoped: "rescoped",
    ActivityAction.merged: "merged",
    ActivityAction.approved: "review",
    ActivityAction.unapproved: "review",
    ActivityAction.reviewed: "review",
    ActivityAction.updated: "updated",
}


def _activity_tag(value: Any) -> str:
    action = value.get("action") if isinstance(value, dict) else getattr(value, "action", None)
    # Unknown actions still parse as a plain activity.
    return _ACTIVITY_TAGS.get(action, "plain")


AnyPullRequestActivity = Annotated[
    Annotated[PullRequestCommentActivity, Tag("comment")]
    | Annotated[PullRequestRescopedActivity, Tag("rescoped")]
    | Annotated[PullRequestMergedActivity, Tag("merged")]
    | Annotated[PullRequestReviewActivity, Tag("review")]
    | Annotated[PullRequestUpdatedActivity, Tag("updated")]
    | Annotated[PullRequestActivity, Tag("plain")],
    Discriminator(_activity_tag),
]
