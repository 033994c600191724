"""Role-based project permissions."""

import logging
from typing import Dict, FrozenSet, Optional, Union

from ..errors import NotFoundError, PermissionDeniedError
from ..models import Role
from ..storage import ProjectStore

logger = logging.getLogger(__name__)

OWNER = "owner"

ACTIONS = frozenset({"view", "edit", "comment", "manage_collaborators", "delete"})

ROLE_PERMISSIONS: Dict[Role, FrozenSet[str]] = {
    Role.ADMIN: ACTIONS,
    Role.EDITOR: frozenset({"view", "edit", "comment"}),
    Role.VIEWER: frozenset({"view", "comment"}),
}


def get_user_role(
    store: ProjectStore, project_id: str, user_id: Optional[str]
) -> Optional[Union[str, Role]]:
    """Return "owner", the collaborator role, or None without access."""
    if not user_id:
        return None

    project = store.get(project_id)
    if project is None:
        return None
    if project.user_id == user_id:
        return OWNER
    return store.collaborator_role(project_id, user_id)


def has_permission(
    store: ProjectStore, project_id: str, user_id: Optional[str], action: str
) -> bool:
    role = get_user_role(store, project_id, user_id)
    if role is None:
        return False
    if role == OWNER:
        return True
    return action in ROLE_PERMISSIONS.get(role, frozenset())


def require_permission(
    store: ProjectStore, project_id: str, user_id: Optional[str], action: str
) -> None:
    """Raise unless the user may perform ``action`` on the project.

    Users with no access at all get NotFoundError so that project ids are
    not disclosed; collaborators missing the permission get
    PermissionDeniedError.
    """
    if has_permission(store, project_id, user_id, action):
        return

    role = get_user_role(store, project_id, user_id)
    if role is None:
        raise NotFoundError("Project not found or unauthorized")

    logger.warning(f"User {user_id} ({role}) denied {action} on project {project_id}")
    raise PermissionDeniedError(f"Your role does not allow '{action}' on this project")
