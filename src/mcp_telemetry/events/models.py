"""Typed telemetry events emitted by dashboard call sites."""

from __future__ import annotations
import json
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Literal
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    JsonValue,
    TypeAdapter,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


class EventKind(str, Enum):
    """Closed set of event kinds accepted by the telemetry pipeline."""

    INSTALL = "install"
    UNINSTALL = "uninstall"
    USAGE = "usage"
    VIEW = "view"
    ERROR = "error"
    RATING = "rating"
    CLAIM = "claim"
    SHARE = "share"
    COMMENT = "comment"


ViewSource = Literal["search", "detail", "profile", "discover"]
ShareVisibility = Literal["public", "private"]


class BaseEvent(BaseModel):
    """Fields shared by every event kind.

    Events are frozen once built and their ``metadata`` is a read-only view.
    Metadata must encode as strict JSON (no ``NaN`` or infinities) so a single
    event can never break the batch it is sent in. Input accepts both the
    snake_case attribute names and their camelCase spelling (``serverId``,
    ``durationMs``...).
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    server_id: str = Field(min_length=1)
    timestamp: datetime | None = None
    metadata: Mapping[str, JsonValue] = Field(
        default_factory=dict, validate_default=True
    )

    @field_validator("metadata")
    @classmethod
    def _freeze_metadata(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        try:
            json.dumps(dict(value), allow_nan=False)
        except (TypeError, ValueError) as exc:
            msg = f"metadata is not JSON encodable: {exc}"
            raise ValueError(msg) from exc
        return MappingProxyType(dict(value))

    @field_serializer("metadata")
    def _dump_metadata(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return dict(value)


class InstallEvent(BaseEvent):
    """A user installed a server."""

    kind: Literal["install"] = "install"
    user_id: str = Field(min_length=1)
    source: str = Field(min_length=1)


class UninstallEvent(BaseEvent):
    """A user removed a server."""

    kind: Literal["uninstall"] = "uninstall"
    user_id: str = Field(min_length=1)
    reason: str | None = None


class UsageEvent(BaseEvent):
    """A tool on the server was invoked."""

    kind: Literal["usage"] = "usage"
    user_id: str = Field(min_length=1)
    tool_name: str = Field(min_length=1)
    duration_ms: float = Field(ge=0, allow_inf_nan=False)
    success: bool | None = None


class ViewEvent(BaseEvent):
    """A server page or card was displayed."""

    kind: Literal["view"] = "view"
    user_id: str | None = None
    source: ViewSource


class ErrorEvent(BaseEvent):
    """A server failed while being used from the dashboard."""

    kind: Literal["error"] = "error"
    user_id: str | None = None
    error: str
    context: str


class RatingEvent(BaseEvent):
    """A user rated a server on the 1-5 scale."""

    kind: Literal["rating"] = "rating"
    user_id: str = Field(min_length=1)
    rating: float = Field(ge=1, le=5)


class ClaimEvent(BaseEvent):
    """A user claimed ownership of a community server."""

    kind: Literal["claim"] = "claim"
    user_id: str = Field(min_length=1)


class ShareEvent(BaseEvent):
    """A user shared a server configuration."""

    kind: Literal["share"] = "share"
    user_id: str = Field(min_length=1)
    visibility: ShareVisibility


class CommentEvent(BaseEvent):
    """A user commented on a server, optionally replying to another comment."""

    kind: Literal["comment"] = "comment"
    user_id: str = Field(min_length=1)
    comment: str = Field(min_length=1)
    parent_id: str | None = None


Event = Annotated[
    InstallEvent
    | UninstallEvent
    | UsageEvent
    | ViewEvent
    | ErrorEvent
    | RatingEvent
    | ClaimEvent
    | ShareEvent
    | CommentEvent,
    Field(discriminator="kind"),
]
"""Discriminated union over every supported event kind."""

EVENT_ADAPTER: TypeAdapter[Event] = TypeAdapter(Event)


__all__ = [
    "EVENT_ADAPTER",
    "BaseEvent",
    "ClaimEvent",
    "CommentEvent",
    "ErrorEvent",
    "Event",
    "EventKind",
    "InstallEvent",
    "RatingEvent",
    "ShareEvent",
    "ShareVisibility",
    "UninstallEvent",
    "UsageEvent",
    "ViewEvent",
    "ViewSource",
]
