from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from app.core.enums import CustomSectionTitle, ProfileAccess
from app.core.errors import FieldError
from app.entities.validation import check_choice, collect, require


@dataclass(frozen=True)
class CustomSection:
    title: str
    details: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class UserProfile:
    id: int
    user_id: int
    username: str
    name: str
    bio: Optional[str] = None
    account_type: int = ProfileAccess.Public.value
    role: Optional[str] = None
    location: Optional[str] = None
    social_links: Dict[str, str] = field(default_factory=dict)
    custom_sections: List[CustomSection] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_private(self) -> bool:
        return self.account_type == ProfileAccess.Private.value

    def find_section(self, title: str) -> Optional[CustomSection]:
        return next((s for s in self.custom_sections if s.title == title), None)


def validate_custom_section(section: Mapping[str, Any], path: str = "custom_sections") -> List[FieldError]:
    errors = collect(
        require(section, ["title"]),
        check_choice(section, "title", [t.value for t in CustomSectionTitle]),
    )
    details = section.get("details")
    if not isinstance(details, list):
        errors.append(FieldError(field=f"{path}.details", message="Custom section details must be an array"))
    return errors


def validate_user_profile(document: Mapping[str, Any]) -> List[FieldError]:
    errors = collect(
        require(document, ["user_id", "username", "name"]),
        check_choice(document, "account_type", [a.value for a in ProfileAccess]),
    )
    titles = set()
    for index, section in enumerate(document.get("custom_sections") or []):
        errors.extend(validate_custom_section(section, f"custom_sections.{index}"))
        if section.get("title") in titles:
            errors.append(
                FieldError(field=f"custom_sections.{index}.title", message="Custom section titles must be unique")
            )
        titles.add(section.get("title"))
    return errors
