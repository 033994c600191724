"""In-process project, collaborator and share records."""

import logging
import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from .errors import NotFoundError, ShareExpiredError
from .models import Collaborator, Project, PublicShare, Role

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectStore:
    """Saved projects and their collaborators."""

    def __init__(self) -> None:
        self._projects: Dict[str, Project] = {}
        self._collaborators: Dict[str, Dict[str, Role]] = {}
        self._lock = threading.Lock()

    def save(self, project: Project) -> Project:
        with self._lock:
            if project.id in self._projects:
                project.touch()
            self._projects[project.id] = project
        logger.debug(f"Saved project {project.id}")
        return project

    def get(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def list_for_user(self, user_id: str) -> List[Project]:
        """Projects the user owns or collaborates on, newest first."""
        with self._lock:
            projects = [
                project
                for project in self._projects.values()
                if project.user_id == user_id
                or user_id in self._collaborators.get(project.id, {})
            ]
        return sorted(projects, key=lambda project: project.created_at, reverse=True)

    def delete(self, project_id: str) -> None:
        with self._lock:
            if self._projects.pop(project_id, None) is None:
                raise NotFoundError("Project not found")
            self._collaborators.pop(project_id, None)
        logger.info(f"Deleted project {project_id}")

    def add_collaborator(self, project_id: str, user_id: str, role: Role) -> Collaborator:
        with self._lock:
            if project_id not in self._projects:
                raise NotFoundError("Project not found")
            self._collaborators.setdefault(project_id, {})[user_id] = role
        return Collaborator(project_id=project_id, user_id=user_id, role=role)

    def collaborator_role(self, project_id: str, user_id: str) -> Optional[Role]:
        return self._collaborators.get(project_id, {}).get(user_id)


class ShareStore:
    """Public share links, at most one active per project."""

    TOKEN_BYTES = 24

    def __init__(self) -> None:
        self._shares: Dict[str, PublicShare] = {}
        self._lock = threading.Lock()

    def issue(
        self,
        project_id: str,
        expires_in_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> PublicShare:
        """Deactivate any active share for the project and create a new one."""
        now = now or _utcnow()
        expires_at = None
        if expires_in_days and expires_in_days > 0:
            expires_at = now + timedelta(days=expires_in_days)

        with self._lock:
            for share in self._shares.values():
                if share.project_id == project_id and share.is_active:
                    share.is_active = False
                    logger.info(f"Deactivated previous share {share.id} for project {project_id}")

            share = PublicShare(
                project_id=project_id,
                share_token=secrets.token_urlsafe(self.TOKEN_BYTES),
                expires_at=expires_at,
                created_at=now,
            )
            self._shares[share.share_token] = share

        return share

    def resolve(self, token: str, now: Optional[datetime] = None) -> PublicShare:
        """Return the active share for a token and count the view."""
        now = now or _utcnow()
        with self._lock:
            share = self._shares.get(token)
            if share is None or not share.is_active:
                raise NotFoundError("This share link is invalid or has expired.")
            if share.is_expired(now):
                raise ShareExpiredError("This share link has expired.")
            share.view_count += 1
            return share.model_copy()

    def revoke(self, project_id: str) -> int:
        """Deactivate every share of a project. Returns how many were active."""
        revoked = 0
        with self._lock:
            for share in self._shares.values():
                if share.project_id == project_id and share.is_active:
                    share.is_active = False
                    revoked += 1
        return revoked

    def active_shares(self, project_id: str) -> List[PublicShare]:
        return [
            share
            for share in self._shares.values()
            if share.project_id == project_id and share.is_active
        ]
