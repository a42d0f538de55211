"""Security schemas - audit actions, chained ledger entries and filters.

Collaborators describe what happened with one of the AuditAction models.
The ledger turns each action into an AuditEntry whose checksum covers its
own content and the checksum of the entry before it.
"""

import hashlib
import json
import os
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_serializer,
    field_validator,
)

from materiatrack.common.constants import AuditConstants


class AuditActionType(str, Enum):
    """Tags of the domain events worth recording."""
    ENTRY_CREATED = "entry_created"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_DELETED = "entry_deleted"
    TRACKING_STARTED = "tracking_started"
    TRACKING_FINISHED = "tracking_finished"
    PROJECT_CREATED = "project_created"
    PROJECT_DELETED = "project_deleted"
    TASK_CREATED = "task_created"
    TASK_DELETED = "task_deleted"
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"
    CONFIG_CHANGED = "config_changed"
    ENCRYPTION_ENABLED = "encryption_enabled"
    ENCRYPTION_DISABLED = "encryption_disabled"


class BaseAuditAction(BaseModel):
    """Common behaviour of every audit action.

    Actions are immutable values carrying only the identifiers and
    scalar facts needed to reconstruct what happened.
    """

    model_config = ConfigDict(frozen=True)

    # Critical actions are never subject to best-effort audit suppression
    CRITICAL: ClassVar[bool] = False

    action_type: AuditActionType

    @property
    def is_critical(self) -> bool:
        return self.CRITICAL

    def details(self) -> Dict[str, Any]:
        """Project the action onto its structured payload."""
        return self.model_dump(mode="json", exclude={"action_type"})


class EntryCreated(BaseAuditAction):
    action_type: Literal[AuditActionType.ENTRY_CREATED] = AuditActionType.ENTRY_CREATED
    entry_id: int
    project: str
    task: str


class EntryUpdated(BaseAuditAction):
    action_type: Literal[AuditActionType.ENTRY_UPDATED] = AuditActionType.ENTRY_UPDATED
    entry_id: int
    changes: List[str] = Field(default_factory=list)


class EntryDeleted(BaseAuditAction):
    CRITICAL: ClassVar[bool] = True
    action_type: Literal[AuditActionType.ENTRY_DELETED] = AuditActionType.ENTRY_DELETED
    entry_id: int


class TrackingStarted(BaseAuditAction):
    action_type: Literal[AuditActionType.TRACKING_STARTED] = AuditActionType.TRACKING_STARTED
    entry_id: int
    project: str
    task: str


class TrackingFinished(BaseAuditAction):
    action_type: Literal[AuditActionType.TRACKING_FINISHED] = AuditActionType.TRACKING_FINISHED
    entry_id: int
    duration_secs: int


class ProjectCreated(BaseAuditAction):
    action_type: Literal[AuditActionType.PROJECT_CREATED] = AuditActionType.PROJECT_CREATED
    project_id: int
    name: str


class ProjectDeleted(BaseAuditAction):
    CRITICAL: ClassVar[bool] = True
    action_type: Literal[AuditActionType.PROJECT_DELETED] = AuditActionType.PROJECT_DELETED
    project_id: int
    name: str


class TaskCreated(BaseAuditAction):
    action_type: Literal[AuditActionType.TASK_CREATED] = AuditActionType.TASK_CREATED
    task_id: int
    name: str
    project_id: int


class TaskDeleted(BaseAuditAction):
    CRITICAL: ClassVar[bool] = True
    action_type: Literal[AuditActionType.TASK_DELETED] = AuditActionType.TASK_DELETED
    task_id: int
    name: str


class DataExported(BaseAuditAction):
    action_type: Literal[AuditActionType.DATA_EXPORTED] = AuditActionType.DATA_EXPORTED
    format: str
    entry_count: int


class DataImported(BaseAuditAction):
    action_type: Literal[AuditActionType.DATA_IMPORTED] = AuditActionType.DATA_IMPORTED
    source: str
    entry_count: int


class ConfigChanged(BaseAuditAction):
    CRITICAL: ClassVar[bool] = True
    action_type: Literal[AuditActionType.CONFIG_CHANGED] = AuditActionType.CONFIG_CHANGED
    key: str


class EncryptionEnabled(BaseAuditAction):
    CRITICAL: ClassVar[bool] = True
    action_type: Literal[AuditActionType.ENCRYPTION_ENABLED] = AuditActionType.ENCRYPTION_ENABLED


class EncryptionDisabled(BaseAuditAction):
    CRITICAL: ClassVar[bool] = True
    action_type: Literal[AuditActionType.ENCRYPTION_DISABLED] = AuditActionType.ENCRYPTION_DISABLED


AuditAction = Annotated[
    Union[
        EntryCreated,
        EntryUpdated,
        EntryDeleted,
        TrackingStarted,
        TrackingFinished,
        ProjectCreated,
        ProjectDeleted,
        TaskCreated,
        TaskDeleted,
        DataExported,
        DataImported,
        ConfigChanged,
        EncryptionEnabled,
        EncryptionDisabled,
    ],
    Field(discriminator="action_type"),
]

_action_adapter: TypeAdapter = TypeAdapter(AuditAction)


def parse_action(data: Dict[str, Any]) -> BaseAuditAction:
    """Build the matching action model from a tagged mapping.

    Example:
        parse_action({"action_type": "entry_deleted", "entry_id": 7})
    """
    return _action_adapter.validate_python(data)


def get_current_user() -> str:
    """Identity recorded as the actor of new entries."""
    return os.environ.get("USER") or os.environ.get("USERNAME") or "unknown"


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def canonical_details(details: Dict[str, Any]) -> str:
    """Serialize a details payload deterministically."""
    return json.dumps(
        details,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def compute_checksum(
    timestamp: datetime,
    action: str,
    details: Dict[str, Any],
    user: str,
    prev_checksum: str,
) -> str:
    """Hash the five chained fields joined with ``|``."""
    content = "|".join([
        _ensure_utc(timestamp).isoformat(),
        action,
        canonical_details(details),
        user,
        prev_checksum,
    ])
    hasher = hashlib.new(AuditConstants.HASH_ALGORITHM)
    hasher.update(content.encode("utf-8"))
    return hasher.hexdigest()


class AuditEntry(BaseModel):
    """A single immutable, checksummed audit ledger entry."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(
        ...,
        description="When the entry was created (UTC)"
    )
    action: str = Field(
        ...,
        description="Action type tag"
    )
    details: Dict[str, Any] = Field(
        default_factory=dict,
        description="Structured payload derived from the action"
    )
    user: str = Field(
        ...,
        description="Identity of the actor"
    )
    checksum: str = Field(
        ...,
        description="Hash over this entry's fields and prev_checksum"
    )
    prev_checksum: str = Field(
        ...,
        description="Checksum of the preceding entry, or the genesis sentinel"
    )

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return _ensure_utc(value)

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: datetime) -> str:
        # Must match the representation fed to the hash
        return value.isoformat()

    @classmethod
    def new(cls, action: BaseAuditAction, prev_checksum: str) -> "AuditEntry":
        """Create an entry for ``action`` chained onto ``prev_checksum``."""
        timestamp = datetime.now(timezone.utc)
        action_type = action.action_type.value
        details = action.details()
        user = get_current_user()

        return cls(
            timestamp=timestamp,
            action=action_type,
            details=details,
            user=user,
            checksum=compute_checksum(timestamp, action_type, details, user, prev_checksum),
            prev_checksum=prev_checksum,
        )

    def calculate_checksum(self) -> str:
        """Recompute the checksum from the stored fields."""
        return compute_checksum(
            self.timestamp,
            self.action,
            self.details,
            self.user,
            self.prev_checksum,
        )

    def verify(self) -> bool:
        """Check that the stored checksum matches the stored fields."""
        return self.checksum == self.calculate_checksum()

    def to_json(self) -> str:
        """Serialize entry to a single JSONL line (without newline)."""
        return json.dumps(self.model_dump(mode="json"), ensure_ascii=False)

    @classmethod
    def from_json(cls, line: str) -> "AuditEntry":
        """Deserialize entry from a JSONL line."""
        return cls.model_validate(json.loads(line))


class AuditFilter(BaseModel):
    """AND-combined optional predicates for ledger searches.

    Built with chained setters::

        AuditFilter().with_action("entry_deleted").with_user("alice")
    """

    model_config = ConfigDict(frozen=True)

    action: Optional[str] = None
    since: Optional[datetime] = None
    until: Optional[datetime] = None
    user: Optional[str] = None

    def with_action(self, action: Union[AuditActionType, str]) -> "AuditFilter":
        value = action.value if isinstance(action, AuditActionType) else action
        return self.model_copy(update={"action": value})

    def with_since(self, since: datetime) -> "AuditFilter":
        return self.model_copy(update={"since": _ensure_utc(since)})

    def with_until(self, until: datetime) -> "AuditFilter":
        return self.model_copy(update={"until": _ensure_utc(until)})

    def with_user(self, user: str) -> "AuditFilter":
        return self.model_copy(update={"user": user})

    def matches(self, entry: AuditEntry) -> bool:
        """Check an entry against every configured predicate."""
        if self.action is not None and entry.action != self.action:
            return False
        if self.since is not None and entry.timestamp < _ensure_utc(self.since):
            return False
        if self.until is not None and entry.timestamp > _ensure_utc(self.until):
            return False
        if self.user is not None and entry.user != self.user:
            return False
        return True
