"""Resource, entitlement and grant value types shared by all syncers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar, Union

# Annotation marking a resource type that has no entitlements/grants phase.
SKIP_ENTITLEMENTS_AND_GRANTS = "skip_entitlements_and_grants"

Annotations = dict[str, Any]

T = TypeVar("T")


class ResourceKind(str, enum.Enum):
    USER = "user"
    TEAM = "team"
    ROLE = "role"


class Trait(str, enum.Enum):
    USER = "user"
    GROUP = "group"
    ROLE = "role"


class UserStatus(str, enum.Enum):
    UNSPECIFIED = "unspecified"
    ENABLED = "enabled"
    DISABLED = "disabled"


class AccountType(str, enum.Enum):
    HUMAN = "human"
    SERVICE = "service"


class EntitlementKind(str, enum.Enum):
    ASSIGNMENT = "assignment"
    PERMISSION = "permission"


@dataclass(frozen=True)
class ResourceType:
    id: str
    display_name: str
    traits: tuple[Trait, ...] = ()
    annotations: Annotations = field(default_factory=dict, compare=False, hash=False)

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind(self.id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "traits": [t.value for t in self.traits],
            "annotations": dict(self.annotations),
        }


USER_RESOURCE_TYPE = ResourceType(
    id=ResourceKind.USER.value,
    display_name="User",
    traits=(Trait.USER,),
    annotations={SKIP_ENTITLEMENTS_AND_GRANTS: True},
)
TEAM_RESOURCE_TYPE = ResourceType(
    id=ResourceKind.TEAM.value,
    display_name="Team",
    traits=(Trait.GROUP,),
)
ROLE_RESOURCE_TYPE = ResourceType(
    id=ResourceKind.ROLE.value,
    display_name="Role",
    traits=(Trait.ROLE,),
)

RESOURCE_TYPES: dict[ResourceKind, ResourceType] = {
    ResourceKind.USER: USER_RESOURCE_TYPE,
    ResourceKind.TEAM: TEAM_RESOURCE_TYPE,
    ResourceKind.ROLE: ROLE_RESOURCE_TYPE,
}


@dataclass(frozen=True)
class ResourceId:
    resource_type: str
    resource: str

    def __str__(self) -> str:
        return f"{self.resource_type}:{self.resource}"


# ----------------------------------------------------------------------
# Trait payloads
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class UserProfile:
    first_name: str = ""
    last_name: str = ""
    login: str = ""
    user_id: str = ""


@dataclass(frozen=True)
class GroupProfile:
    team_name: str = ""
    team_description: str = ""
    team_id: str = ""


@dataclass(frozen=True)
class RoleProfile:
    role_name: str = ""
    role_id: str = ""


@dataclass(frozen=True)
class UserTrait:
    profile: UserProfile
    email: str = ""
    email_is_primary: bool = True
    status: UserStatus = UserStatus.UNSPECIFIED
    account_type: AccountType = AccountType.HUMAN

    def to_dict(self) -> dict[str, Any]:
        return {
            "trait": Trait.USER.value,
            "profile": vars(self.profile).copy(),
            "email": self.email,
            "email_is_primary": self.email_is_primary,
            "status": self.status.value,
            "account_type": self.account_type.value,
        }


@dataclass(frozen=True)
class GroupTrait:
    profile: GroupProfile

    def to_dict(self) -> dict[str, Any]:
        return {"trait": Trait.GROUP.value, "profile": vars(self.profile).copy()}


@dataclass(frozen=True)
class RoleTrait:
    profile: RoleProfile

    def to_dict(self) -> dict[str, Any]:
        return {"trait": Trait.ROLE.value, "profile": vars(self.profile).copy()}


ResourceTrait = Union[UserTrait, GroupTrait, RoleTrait]


# ----------------------------------------------------------------------
# Graph values
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Resource:
    id: ResourceId
    display_name: str
    trait: Optional[ResourceTrait] = None

    @property
    def resource_type_id(self) -> str:
        return self.id.resource_type

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id.resource,
            "resource_type": self.id.resource_type,
            "display_name": self.display_name,
            "trait": self.trait.to_dict() if self.trait else None,
        }


@dataclass(frozen=True)
class Entitlement:
    resource_id: ResourceId
    slug: str
    kind: EntitlementKind = EntitlementKind.ASSIGNMENT
    grantable_to: tuple[str, ...] = ()
    display_name: str = ""
    description: str = ""

    @property
    def id(self) -> str:
        return f"{self.resource_id}:{self.slug}"

    @classmethod
    def from_id(cls, entitlement_id: str) -> "Entitlement":
        """Rebuild a bare reference from ``<type>:<resource>:<slug>``."""
        parts = entitlement_id.split(":")
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"malformed entitlement id: {entitlement_id!r}")
        resource_type, resource, slug = parts
        return cls(resource_id=ResourceId(resource_type, resource), slug=slug)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "resource_type": self.resource_id.resource_type,
            "resource_id": self.resource_id.resource,
            "slug": self.slug,
            "kind": self.kind.value,
            "grantable_to": list(self.grantable_to),
            "display_name": self.display_name,
            "description": self.description,
        }


@dataclass(frozen=True)
class Grant:
    entitlement_resource: ResourceId
    slug: str
    principal: ResourceId

    @property
    def entitlement_id(self) -> str:
        return f"{self.entitlement_resource}:{self.slug}"

    @property
    def id(self) -> str:
        return f"{self.entitlement_id}:{self.principal}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entitlement_id": self.entitlement_id,
            "principal_type": self.principal.resource_type,
            "principal_id": self.principal.resource,
        }


@dataclass
class SyncPage(Generic[T]):
    """One page of List/Entitlements/Grants output. Empty ``next_token`` is terminal."""

    items: list[T] = field(default_factory=list)
    next_token: str = ""
    annotations: Annotations = field(default_factory=dict)
