"""HTTP endpoints.

Every authenticated endpoint runs the same pipeline: authenticate, rate
limit, validate, authorise, then do the work. Handlers are plain functions
and run in FastAPI's threadpool.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, Request, Response

from ..agents import ScriptRequest
from ..editor.report import render_report, report_filename
from ..errors import (
    AuthenticationError,
    InputValidationError,
    NotFoundError,
    RateLimitExceeded,
)
from ..guards.permissions import require_permission
from ..guards.rate_limit import RateLimitResult, rate_limit_headers
from ..guards.validation import (
    CollaboratorInput,
    ProjectInput,
    ValidationResult,
    validate_generate_script_input,
    validate_input,
    validate_scene_input,
    validate_share_link_input,
)
from ..models import Project
from .auth import bearer_token
from .services import Services

logger = logging.getLogger(__name__)

router = APIRouter()


@dataclass
class Caller:
    """Authenticated user of a request, with its rate limit outcome if checked."""

    user_id: str
    rate_limit: Optional[RateLimitResult] = None


def get_services(request: Request) -> Services:
    return request.app.state.services


def current_caller(request: Request, services: Services = Depends(get_services)) -> Caller:
    token = bearer_token(request.headers.get("Authorization"))
    user_id = services.authenticator.authenticate(token) if token else None
    if not user_id:
        raise AuthenticationError("Unauthorized")
    return Caller(user_id=user_id)


def rate_limited(endpoint: str) -> Callable[..., Caller]:
    """Dependency that authenticates and then counts the request against ``endpoint``."""

    def dependency(
        response: Response,
        caller: Caller = Depends(current_caller),
        services: Services = Depends(get_services),
    ) -> Caller:
        result = services.rate_limiter.check_endpoint(caller.user_id, endpoint)
        if not result.allowed:
            raise RateLimitExceeded(result, endpoint)
        response.headers.update(rate_limit_headers(result))
        caller.rate_limit = result
        return caller

    return dependency


async def json_body(request: Request) -> Any:
    """Request body decoded as JSON, or None if it is missing or malformed."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _validated(result: ValidationResult) -> Any:
    if not result.success:
        raise InputValidationError(result.error)
    return result.data


def _project_json(project: Project, public: bool = False) -> dict:
    data = project.model_dump(mode="json", by_alias=True)
    if public:
        data.pop("user_id", None)
    return data


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.post("/generate-video-script")
def generate_video_script(
    caller: Caller = Depends(rate_limited("generate_script")),
    body: Any = Depends(json_body),
    services: Services = Depends(get_services),
) -> dict:
    data = _validated(validate_generate_script_input(body))
    logger.info(f"User {caller.user_id} generating script for '{data.topic[:60]}'")

    agent = services.script_writer_factory()
    script = agent.run(ScriptRequest(topic=data.topic))
    return {"script": script.model_dump(mode="json", by_alias=True, exclude_none=True)}


@router.post("/generate-storyboard")
def generate_storyboard(
    caller: Caller = Depends(rate_limited("generate_storyboard")),
    body: Any = Depends(json_body),
    services: Services = Depends(get_services),
) -> dict:
    data = _validated(validate_scene_input(body))
    logger.info(f"User {caller.user_id} generating image for scene {data.scene.scene_number}")

    client = services.image_client_factory()
    image = client.generate_image(data.scene)
    return {"sceneNumber": image.scene_number, "imageUrl": image.image_url}


@router.post("/generate-share-link")
def generate_share_link(
    caller: Caller = Depends(rate_limited("generate_share_link")),
    body: Any = Depends(json_body),
    services: Services = Depends(get_services),
) -> dict:
    data = _validated(validate_share_link_input(body))

    project = services.projects.get(data.project_id)
    if project is None or project.user_id != caller.user_id:
        raise NotFoundError("Project not found or unauthorized")

    share = services.shares.issue(project.id, data.expires_in_days)
    logger.info(f"Issued share link for project {project.id}")
    return {"share_token": share.share_token}


@router.get("/shared/{token}")
def view_shared_project(token: str, services: Services = Depends(get_services)) -> dict:
    share = services.shares.resolve(token)
    project = services.projects.get(share.project_id)
    if project is None:
        raise NotFoundError("This share link is invalid or has expired.")
    return {
        "project": _project_json(project, public=True),
        "view_count": share.view_count,
        "expires_at": share.expires_at.isoformat() if share.expires_at else None,
    }


@router.post("/projects", status_code=201)
def create_project(
    caller: Caller = Depends(current_caller),
    body: Any = Depends(json_body),
    services: Services = Depends(get_services),
) -> dict:
    data = _validated(validate_input(ProjectInput, body))

    project = Project.from_script(data.topic, data.script, user_id=caller.user_id)
    for image in data.storyboard_images:
        project.set_image(image.scene_number, image.image_url)
    services.projects.save(project)

    logger.info(f"User {caller.user_id} saved project {project.id}")
    return _project_json(project)


@router.get("/projects")
def list_projects(
    caller: Caller = Depends(current_caller),
    services: Services = Depends(get_services),
) -> dict:
    projects = services.projects.list_for_user(caller.user_id)
    return {"projects": [_project_json(project) for project in projects]}


@router.get("/projects/{project_id}")
def get_project(
    project_id: str,
    caller: Caller = Depends(current_caller),
    services: Services = Depends(get_services),
) -> dict:
    require_permission(services.projects, project_id, caller.user_id, "view")
    return _project_json(services.projects.get(project_id))


@router.delete("/projects/{project_id}")
def delete_project(
    project_id: str,
    caller: Caller = Depends(current_caller),
    services: Services = Depends(get_services),
) -> dict:
    require_permission(services.projects, project_id, caller.user_id, "delete")
    services.projects.delete(project_id)
    revoked = services.shares.revoke(project_id)
    return {"deleted": project_id, "revoked_shares": revoked}


@router.post("/projects/{project_id}/collaborators", status_code=201)
def add_collaborator(
    project_id: str,
    caller: Caller = Depends(current_caller),
    body: Any = Depends(json_body),
    services: Services = Depends(get_services),
) -> dict:
    data = _validated(validate_input(CollaboratorInput, body))
    require_permission(services.projects, project_id, caller.user_id, "manage_collaborators")

    collaborator = services.projects.add_collaborator(project_id, data.user_id, data.role)
    logger.info(f"User {caller.user_id} added {data.user_id} as {data.role.value} on {project_id}")
    return collaborator.model_dump(mode="json")


@router.get("/projects/{project_id}/export.pdf")
def export_project(
    project_id: str,
    caller: Caller = Depends(rate_limited("export_pdf")),
    services: Services = Depends(get_services),
) -> Response:
    require_permission(services.projects, project_id, caller.user_id, "view")
    project = services.projects.get(project_id)

    content = render_report(project, image_loader=services.image_loader)
    headers = {"Content-Disposition": f'attachment; filename="{report_filename(project)}"'}
    if caller.rate_limit is not None:
        headers.update(rate_limit_headers(caller.rate_limit))
    return Response(content=content, media_type="application/pdf", headers=headers)
