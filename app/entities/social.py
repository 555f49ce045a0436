"""Follow graph and group membership entities.

Both carry three disjoint id lists. A user id is in at most one of a group's
``owners``/``members``/``requests`` at any time.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional

from app.core.enums import ProfileAccess
from app.core.errors import FieldError
from app.entities.validation import check_choice, collect, require


@dataclass(frozen=True)
class Follow:
    id: int
    user_id: int
    following: List[int] = field(default_factory=list)
    followers: List[int] = field(default_factory=list)
    requests: List[int] = field(default_factory=list)
    created_at: Optional[datetime] = None

    def is_following(self, user_id: int) -> bool:
        return user_id in self.following

    def has_follower(self, user_id: int) -> bool:
        return user_id in self.followers

    def has_request_from(self, user_id: int) -> bool:
        return user_id in self.requests


@dataclass(frozen=True)
class Group:
    id: int
    group_name: str
    bio: Optional[str] = None
    owners: List[int] = field(default_factory=list)
    members: List[int] = field(default_factory=list)
    requests: List[int] = field(default_factory=list)
    account_type: int = ProfileAccess.Public.value
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_private(self) -> bool:
        return self.account_type == ProfileAccess.Private.value

    def is_owner(self, user_id: int) -> bool:
        return user_id in self.owners

    def is_member(self, user_id: int) -> bool:
        return user_id in self.members

    def is_part_of(self, user_id: int) -> bool:
        return self.is_owner(user_id) or self.is_member(user_id)

    def has_requested(self, user_id: int) -> bool:
        return user_id in self.requests


@dataclass(frozen=True)
class UserGroups:
    id: int
    user_id: int
    groups: List[int] = field(default_factory=list)


def validate_group(document: Mapping[str, Any]) -> List[FieldError]:
    errors = collect(
        require(document, ["group_name"]),
        check_choice(document, "account_type", [a.value for a in ProfileAccess]),
    )
    if not document.get("owners"):
        errors.append(FieldError(field="owners", message="A group needs at least one owner"))

    seen = {}
    for list_name in ("owners", "members", "requests"):
        for user_id in document.get(list_name) or []:
            if user_id in seen and seen[user_id] != list_name:
                errors.append(
                    FieldError(
                        field=list_name,
                        message=f"User {user_id} is already listed in {seen[user_id]}",
                        value=user_id,
                    )
                )
            seen.setdefault(user_id, list_name)
    return errors


def validate_follow(document: Mapping[str, Any]) -> List[FieldError]:
    return require(document, ["user_id"])


def validate_user_groups(document: Mapping[str, Any]) -> List[FieldError]:
    return require(document, ["user_id"])
