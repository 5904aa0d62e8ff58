"""
Caller identity dependencies.

Authentication happens in the gateway in front of the service, which
forwards the caller as `X-User-Id` and a comma separated `X-User-Roles`.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Iterable
from fastapi import Header, HTTPException, status


@dataclass(frozen=True)
class Actor:
    """The user performing an operation."""
    user_id: str
    roles: List[str] = field(default_factory=list)

    def has_any_role(self, roles: Iterable[str]) -> bool:
        wanted = {role.lower() for role in roles}
        return any(role.lower() in wanted for role in self.roles)


def parse_roles(raw: Optional[str]) -> List[str]:
    """Splits a comma separated role header into normalized role names."""
    if not raw:
        return []
    return [role.strip().lower() for role in raw.split(",") if role.strip()]


# ============================================
# DEPENDENCIES
# ============================================

async def get_current_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_roles: Optional[str] = Header(default=None),
) -> Actor:
    """
    Reads the caller from the gateway headers.
    Raises 401 when no user id was forwarded.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header"
        )
    return Actor(user_id=x_user_id.strip(), roles=parse_roles(x_user_roles))
