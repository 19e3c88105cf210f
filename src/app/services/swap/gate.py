"""Authorization rules for swap triggers."""

from app.models.swap import SwapRequest
from app.services.swap.schemas import Role, SwapTrigger

TARGET_TRIGGERS = frozenset({SwapTrigger.TARGET_ACCEPT, SwapTrigger.TARGET_REJECT})
MANAGER_TRIGGERS = frozenset({SwapTrigger.MANAGER_APPROVE, SwapTrigger.MANAGER_REJECT})
HR_TRIGGERS = frozenset({SwapTrigger.HR_APPROVE, SwapTrigger.HR_REJECT})

MANAGER_ROLES = frozenset({Role.MANAGER, Role.ADMIN})
HR_ROLES = frozenset({Role.HR, Role.ADMIN})


def _as_role(role: Role | str | None) -> Role | None:
    if role is None or isinstance(role, Role):
        return role
    try:
        return Role(role.lower())
    except ValueError:
        return None


def is_allowed(
    actor_id: str,
    actor_role: Role | str | None,
    record: SwapRequest,
    trigger: SwapTrigger,
) -> bool:
    """Decide whether an actor may fire a trigger on a swap record.

    Only identity and role are checked here; whether the trigger is valid
    for the record's status is decided by the state machine beforehand.

    @param actor_id - Acting employee
    @param actor_role - Directory role of the actor
    @param record - Swap request
    @param trigger - Requested trigger
    @returns True if permitted
    """
    role = _as_role(actor_role)

    if trigger in TARGET_TRIGGERS:
        return actor_id == record.target_id

    if trigger in MANAGER_TRIGGERS:
        return role in MANAGER_ROLES

    if trigger in HR_TRIGGERS:
        return role in HR_ROLES and record.requires_cross_approval

    return False
