"""Input validation, rate limiting and permission checks."""

from .validation import (
    ValidationResult,
    GenerateScriptInput,
    GenerateStoryboardInput,
    GenerateShareLinkInput,
    CollaboratorInput,
    ProjectInput,
    validate_input,
    validate_generate_script_input,
    validate_scene_input,
    validate_share_link_input,
)
from .rate_limit import (
    RATE_LIMITS,
    RateLimitConfig,
    RateLimitEntry,
    RateLimitResult,
    RateLimitStore,
    RateLimiter,
    rate_limit_headers,
)
from .permissions import (
    OWNER,
    ROLE_PERMISSIONS,
    get_user_role,
    has_permission,
    require_permission,
)

__all__ = [
    # Validation
    "ValidationResult",
    "GenerateScriptInput",
    "GenerateStoryboardInput",
    "GenerateShareLinkInput",
    "CollaboratorInput",
    "ProjectInput",
    "validate_input",
    "validate_generate_script_input",
    "validate_scene_input",
    "validate_share_link_input",
    # Rate limiting
    "RATE_LIMITS",
    "RateLimitConfig",
    "RateLimitEntry",
    "RateLimitResult",
    "RateLimitStore",
    "RateLimiter",
    "rate_limit_headers",
    # Permissions
    "OWNER",
    "ROLE_PERMISSIONS",
    "get_user_role",
    "has_permission",
    "require_permission",
]
