"""Change notification types for filesystem monitoring."""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

RawEventType = Literal["rename", "change"]


DEFAULT_IGNORES: tuple[str, ...] = (
    ".git",
    "node_modules",
)


class RawChange(BaseModel):
    """Filesystem event as observed, before debouncing and filtering.

    Attributes:
        event_type: "rename" for create/delete/move, "change" for writes.
        filename: Path relative to the watched root, "/" separated.
    """

    model_config = ConfigDict(frozen=True)

    event_type: RawEventType
    filename: str


class ChangeNotification(BaseModel):
    """Normalized change published to live-reload subscribers.

    Serializes as ``{"eventType": "change", "filename": ...}``.

    Attributes:
        event_type: Always "change".
        filename: Path relative to the watched root, "/" separated.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event_type: Literal["change"] = Field(
        default="change",
        alias="eventType",
        description="Notification kind",
    )
    filename: str = Field(description="Relative file path")


NotificationBatch = TypeAdapter(list[ChangeNotification])


def dump_batch(notifications: list[ChangeNotification]) -> str:
    """Serialize notifications as the JSON array sent in one SSE frame."""
    return NotificationBatch.dump_json(notifications, by_alias=True).decode()
