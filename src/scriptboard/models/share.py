"""Sharing and collaboration data models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class Role(str, Enum):
    """Collaborator role on a project."""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class PublicShare(BaseModel):
    """A public, unauthenticated read link to one project."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Share record id")
    project_id: str = Field(..., description="Shared project")
    share_token: str = Field(..., description="Opaque token used in the public URL")
    expires_at: Optional[datetime] = Field(None, description="Expiry time, None for never")
    is_active: bool = Field(default=True, description="False once superseded or revoked")
    view_count: int = Field(default=0, ge=0, description="Public views so far")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Creation time"
    )

    class Config:
        """Pydantic config."""
        frozen = False

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now


class Collaborator(BaseModel):
    """A user granted a role on someone else's project."""

    project_id: str
    user_id: str
    role: Role
