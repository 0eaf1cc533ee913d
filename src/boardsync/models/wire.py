"""Wire schema: JSON shapes returned by the remote store.

These models mirror the REST payloads as closely as possible and are
deliberately permissive: almost every field is optional, unknown fields
are ignored, and user references may be null when the referenced record
was deleted, or a bare id when the endpoint did not populate them (the
move endpoint returns unpopulated assignees; lists never populate comment
authors). The converter is the only consumer and
is responsible for turning these shapes into view-model records.

Identifiers arrive as ``_id`` (document store) and occasionally as
``id``; both are accepted.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

_ID = AliasChoices("_id", "id")


class WireModel(BaseModel):
    """Base for wire models: ignore unknown keys, accept field names too."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        """Treat explicit nulls like missing keys so field defaults apply."""
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class WireUser(WireModel):
    id: str = Field(default="", validation_alias=_ID)
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    name: str | None = None
    email: str | None = None
    avatar: str | None = None

    @property
    def display_name(self) -> str:
        """Full name, or empty string when the record carries no name."""
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or (self.name or "").strip()


class WireMember(WireModel):
    user: WireUser | None = None
    role: str = "member"


class WireProject(WireModel):
    id: str = Field(validation_alias=_ID)
    title: str | None = None
    description: str | None = None
    owner: WireUser | None = None
    members: list[WireMember] = Field(default_factory=list)


class WireLabel(WireModel):
    name: str = ""
    color: str | None = None


class WireChecklistItem(WireModel):
    """A subtask or checklist entry (the store uses both shapes)."""

    id: str | None = Field(default=None, validation_alias=_ID)
    title: str | None = Field(default=None, validation_alias=AliasChoices("title", "text"))
    completed: bool | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    completed_at: str | None = Field(default=None, alias="completedAt")


class WireComment(WireModel):
    id: str | None = Field(default=None, validation_alias=_ID)
    text: str | None = None
    author: WireUser | str | None = None
    mentions: list[str] = Field(default_factory=list)
    is_edited: bool | None = Field(default=None, alias="isEdited")
    edited_at: str | None = Field(default=None, alias="editedAt")
    created_at: str | None = Field(default=None, alias="createdAt")


class WireAttachment(WireModel):
    id: str | None = Field(default=None, validation_alias=_ID)
    filename: str | None = None
    original_name: str | None = Field(default=None, alias="originalName")
    mimetype: str | None = None
    size: int | None = None
    url: str | None = None
    uploaded_by: WireUser | str | None = Field(default=None, alias="uploadedBy")
    uploaded_at: str | None = Field(default=None, alias="uploadedAt")


class WireCard(WireModel):
    id: str = Field(validation_alias=_ID)
    title: str | None = None
    description: str | None = None
    list_id: str | None = Field(default=None, validation_alias=AliasChoices("listId", "list"))
    board_id: str | None = Field(default=None, validation_alias=AliasChoices("boardId", "board"))
    position: int | None = None
    priority: str | None = None
    status: str | None = None
    due_date: str | None = Field(default=None, alias="dueDate")
    start_date: str | None = Field(default=None, alias="startDate")
    assigned_to: list[WireUser | str | None] = Field(default_factory=list, alias="assignedTo")
    labels: list[WireLabel] = Field(default_factory=list)
    subtasks: list[WireChecklistItem] = Field(default_factory=list)
    checklist: list[WireChecklistItem] = Field(default_factory=list)
    comments: list[WireComment] = Field(default_factory=list)
    attachments: list[WireAttachment] = Field(default_factory=list)
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")


class WireWipLimit(WireModel):
    enabled: bool | None = None
    limit: int | None = None


class WireListSettings(WireModel):
    wip_limit: WireWipLimit | None = Field(default=None, alias="wipLimit")


class WireList(WireModel):
    id: str = Field(validation_alias=_ID)
    title: str | None = None
    color: str | None = None
    position: int | None = None
    list_type: str | None = Field(default=None, alias="listType")
    settings: WireListSettings | None = None
    cards: list[WireCard] | None = None


class WireBoard(WireModel):
    id: str = Field(validation_alias=_ID)
    title: str | None = None
    description: str | None = None
    color: str | None = None
    position: int | None = None
    project: str | None = None
    lists: list[WireList] | None = None


class WireFieldError(WireModel):
    field: str | None = Field(default=None, validation_alias=AliasChoices("field", "path", "param"))
    message: str | None = Field(default=None, validation_alias=AliasChoices("message", "msg"))


class WireEnvelope(WireModel):
    """Uniform response envelope ``{success, data, message}``."""

    success: bool = True
    data: Any = None
    message: str | None = None
    errors: list[WireFieldError] | None = None
