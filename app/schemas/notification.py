from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Annotated, List, Literal, Optional, Union


class UserAudience(BaseModel):
    kind: Literal["user"] = "user"
    username: str


class UsersAudience(BaseModel):
    kind: Literal["users"] = "users"
    usernames: List[str]


class RolesAudience(BaseModel):
    kind: Literal["roles"] = "roles"
    roles: List[str]


class PublicAudience(BaseModel):
    kind: Literal["public"] = "public"


Audience = Annotated[
    Union[UserAudience, UsersAudience, RolesAudience, PublicAudience],
    Field(discriminator="kind"),
]

# Keys the store always generates itself
RESERVED_KEYS = {"id", "_id", "createdAt", "read"}


class NotificationCreate(BaseModel):
    """
    Partial description of a notification, as passed to NotificationStore.add.

    The audience is a single tagged variant. The legacy targeting fields
    (forUser / forUsers / forRoles) are still accepted, but only one of them,
    and never together with an explicit audience.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str = "info"
    title: str = ""
    message: str = ""
    path: str = "/"
    icon: str = "Bell"
    color: str = "blue"
    audience: Optional[Audience] = None

    customer_id: Optional[str] = Field(default=None, alias="customerId")
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    expiry_date: Optional[str] = Field(default=None, alias="expiryDate")

    for_user: Optional[str] = Field(default=None, alias="forUser")
    for_users: Optional[List[Optional[str]]] = Field(default=None, alias="forUsers")
    for_roles: Optional[List[str]] = Field(default=None, alias="forRoles")

    @model_validator(mode="after")
    def resolve_audience(self):
        legacy = []
        if self.for_user:
            legacy.append(UserAudience(username=self.for_user))
        if self.for_users is not None:
            legacy.append(UsersAudience(usernames=[u for u in self.for_users if u]))
        if self.for_roles is not None:
            legacy.append(RolesAudience(roles=self.for_roles))

        if len(legacy) > 1:
            raise ValueError("Only one of forUser, forUsers or forRoles may be set")
        if legacy and self.audience is not None:
            raise ValueError("Use either audience or a legacy targeting field, not both")

        if legacy:
            self.audience = legacy[0]
        elif self.audience is None:
            self.audience = PublicAudience()
        return self

    def payload(self) -> dict:
        """Stored fields without targeting, camelCase as persisted."""
        data = self.model_dump(
            by_alias=True,
            exclude_none=True,
            exclude={"audience", "for_user", "for_users", "for_roles"},
        )
        for key in RESERVED_KEYS:
            data.pop(key, None)
        return data


class TargetAchievementRequest(BaseModel):
    employee_name: str
    percentage: float
