"""Map Datadog JSON:API records onto resources, entitlements and grants.

Everything here is pure: the same upstream records always produce equal
values, so repeated sync passes over unchanged data are set-equal.
"""

from __future__ import annotations

from typing import Any, Optional

from baton_datadog.models import (
    ROLE_RESOURCE_TYPE,
    TEAM_RESOURCE_TYPE,
    USER_RESOURCE_TYPE,
    AccountType,
    Entitlement,
    EntitlementKind,
    Grant,
    GroupProfile,
    GroupTrait,
    Resource,
    ResourceId,
    RoleProfile,
    RoleTrait,
    UserProfile,
    UserStatus,
    UserTrait,
)

MEMBER = "member"
ADMIN = "admin"

_USER_STATUS = {
    "Active": UserStatus.ENABLED,
    "Disabled": UserStatus.DISABLED,
}


def _attributes(record: dict[str, Any]) -> dict[str, Any]:
    return record.get("attributes") or {}


def split_full_name(name: str) -> tuple[str, str]:
    """Split on the first space: ``"Ada King Lovelace"`` -> ``("Ada", "King Lovelace")``."""
    parts = name.split(" ", 1)
    first = parts[0]
    last = parts[1] if len(parts) > 1 else ""
    return first, last


# ----------------------------------------------------------------------
# Resources
# ----------------------------------------------------------------------


def user_resource(user: dict[str, Any]) -> Resource:
    attrs = _attributes(user)
    name = attrs.get("name") or ""
    email = attrs.get("email") or ""
    first, last = split_full_name(name)

    trait = UserTrait(
        profile=UserProfile(
            first_name=first,
            last_name=last,
            login=email,
            user_id=user["id"],
        ),
        email=email,
        status=_USER_STATUS.get(attrs.get("status") or "", UserStatus.UNSPECIFIED),
        account_type=AccountType.SERVICE if attrs.get("service_account") else AccountType.HUMAN,
    )
    return Resource(
        id=ResourceId(USER_RESOURCE_TYPE.id, user["id"]),
        display_name=name,
        trait=trait,
    )


def team_resource(team: dict[str, Any]) -> Resource:
    attrs = _attributes(team)
    name = attrs.get("name") or ""
    trait = GroupTrait(
        profile=GroupProfile(
            team_name=name,
            team_description=attrs.get("description") or "",
            team_id=team["id"],
        )
    )
    return Resource(
        id=ResourceId(TEAM_RESOURCE_TYPE.id, team["id"]),
        display_name=name,
        trait=trait,
    )


def role_resource(role: dict[str, Any]) -> Resource:
    name = _attributes(role).get("name") or ""
    trait = RoleTrait(profile=RoleProfile(role_name=name, role_id=role["id"]))
    return Resource(
        id=ResourceId(ROLE_RESOURCE_TYPE.id, role["id"]),
        display_name=name,
        trait=trait,
    )


# ----------------------------------------------------------------------
# Entitlements
# ----------------------------------------------------------------------


def _team_entitlement(team: Resource, slug: str, kind: EntitlementKind) -> Entitlement:
    return Entitlement(
        resource_id=team.id,
        slug=slug,
        kind=kind,
        grantable_to=(USER_RESOURCE_TYPE.id,),
        display_name=f"{team.display_name} Team {slug}",
        description=f"{slug} of {team.display_name} Datadog team",
    )


def team_entitlements(team: Resource) -> list[Entitlement]:
    return [
        _team_entitlement(team, MEMBER, EntitlementKind.ASSIGNMENT),
        _team_entitlement(team, ADMIN, EntitlementKind.PERMISSION),
    ]


def role_entitlements(role: Resource) -> list[Entitlement]:
    return [
        Entitlement(
            resource_id=role.id,
            slug=MEMBER,
            kind=EntitlementKind.ASSIGNMENT,
            grantable_to=(USER_RESOURCE_TYPE.id,),
            display_name=f"{role.display_name} Role {MEMBER}",
            description=f"Member of {role.display_name} Datadog role",
        )
    ]


# ----------------------------------------------------------------------
# Grants
# ----------------------------------------------------------------------


def membership_role(membership: dict[str, Any]) -> Optional[str]:
    """The elevation attribute of a team membership, ``None`` when absent."""
    return _attributes(membership).get("role")


def membership_user_id(membership: dict[str, Any]) -> str:
    relationships = membership.get("relationships") or {}
    user = (relationships.get("user") or {}).get("data") or {}
    user_id = user.get("id")
    if not user_id:
        raise ValueError(f"team membership {membership.get('id')!r} has no user")
    return user_id


def team_membership_grants(team: Resource, user: Resource, role: Optional[str]) -> list[Grant]:
    """Member grant, plus an admin grant when the membership is elevated."""
    grants = [Grant(entitlement_resource=team.id, slug=MEMBER, principal=user.id)]
    if role == ADMIN:
        grants.append(Grant(entitlement_resource=team.id, slug=ADMIN, principal=user.id))
    return grants


def role_member_grant(role: Resource, user: Resource) -> Grant:
    return Grant(entitlement_resource=role.id, slug=MEMBER, principal=user.id)
