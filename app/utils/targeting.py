from typing import List
from app.schemas.notification import (
    NotificationCreate,
    UserAudience,
    UsersAudience,
    RolesAudience,
)

TARGETING_FIELDS = ("forUser", "forUsers", "forRoles")


def expand_audience(base: dict, audience) -> List[dict]:
    """
    Turn one logical notification into the records that get stored.

    - user:   one record carrying forUser
    - users:  one record per username, id "<base>-user-<name>", each with forUser
    - roles:  one record carrying the whole forRoles list, id "<base>-roles"
    - public: one record with no targeting fields
    """
    if isinstance(audience, UserAudience):
        return [{**base, "forUser": audience.username}]

    if isinstance(audience, UsersAudience):
        return [
            {**base, "id": f"{base['id']}-user-{username}", "forUser": username}
            for username in audience.usernames
            if username
        ]

    if isinstance(audience, RolesAudience):
        return [{**base, "id": f"{base['id']}-roles", "forRoles": list(audience.roles)}]

    return [dict(base)]


def is_superseded(existing: dict, spec: NotificationCreate) -> bool:
    """
    True when an incoming notification replaces a stored one.

    Same customerId and type supersede, unless both sides carry an
    expiryDate and the dates match.
    """
    if not spec.customer_id or not existing.get("customerId"):
        return False
    if existing.get("type") != spec.type or existing.get("customerId") != spec.customer_id:
        return False
    if spec.expiry_date and existing.get("expiryDate"):
        return existing["expiryDate"] != spec.expiry_date
    return True


def supersede(existing: List[dict], spec: NotificationCreate) -> List[dict]:
    return [n for n in existing if not is_superseded(n, spec)]
