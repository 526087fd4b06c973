"""Access-control policy outcomes shared by the resource policies.

A policy either passes (the dependency returns the loaded resource) or
fails with one of these errors; routes never see a half-checked resource.
"""

from fastapi import HTTPException, status

from agora.core.logging import get_logger


logger = get_logger(__name__)


class PolicyError(Exception):
    """Base policy error."""

    def __init__(self, message: str, code: str = "policy_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class PolicyForbiddenError(PolicyError):
    """The requester does not satisfy the active branch of the policy."""

    def __init__(self, policy: str, reason: str):
        super().__init__("Forbidden", "forbidden")
        self.policy = policy
        self.reason = reason


class ResourceNotFoundError(PolicyError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, "not_found")


def handle_policy_error(error: PolicyError) -> HTTPException:
    """Convert policy errors to HTTP exceptions.

    The failing reason is only logged; clients get a bare 403.
    """
    if isinstance(error, PolicyForbiddenError):
        logger.debug("policy_failed", policy=error.policy, reason=error.reason)

    status_map = {
        "forbidden": status.HTTP_403_FORBIDDEN,
        "not_found": status.HTTP_404_NOT_FOUND,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_403_FORBIDDEN),
        detail=error.message,
    )
