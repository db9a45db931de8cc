"""Role ordering used by every project permission check: Viewer < Editor < Owner."""
from typing import Optional

from tasktracker.models.project_share import ProjectRole

ROLE_RANKS = {
    ProjectRole.VIEWER: 1,
    ProjectRole.EDITOR: 2,
    ProjectRole.OWNER: 3,
}


def rank(role: Optional[ProjectRole]) -> int:
    """Numeric rank of ``role``; no role ranks below every real one."""
    if role is None:
        return 0
    return ROLE_RANKS[ProjectRole(role)]


def satisfies(held: Optional[ProjectRole], required: ProjectRole) -> bool:
    return rank(held) >= rank(required)
