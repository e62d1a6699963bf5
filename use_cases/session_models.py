"""Session DTOs shared across application layers."""

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

REQUIRED_PROFILE_FIELDS = ("full_name", "roll_number", "branch", "year", "hostel")
EDITABLE_PROFILE_FIELDS = REQUIRED_PROFILE_FIELDS + ("bio", "phone")

BRANCHES = (
    "Computer Engineering",
    "Information Technology",
    "Electronics & Communication",
    "Electrical Engineering",
    "Mechanical Engineering",
    "Civil Engineering",
    "Production & Industrial",
    "Environmental Engineering",
    "Biotechnology",
    "Software Engineering",
    "Mathematics & Computing",
    "Engineering Physics",
)

YEARS = ("1st Year", "2nd Year", "3rd Year", "4th Year", "5th Year")

HOSTELS = (
    "BH-1", "BH-2", "BH-3", "BH-4", "BR Hostel",
    "GH-1", "GH-2",
    "Day Scholar",
)


@dataclass(frozen=True)
class Identity:
    """Provider user record.

    `email_verified` is informational only. The provider already refuses to
    sign in an unverified address, so no flow decision reads it.
    """

    id: str
    email: str
    email_verified: bool = False


@dataclass(frozen=True)
class Profile:
    user_id: str
    email: str = ""
    full_name: Optional[str] = None
    roll_number: Optional[str] = None
    branch: Optional[str] = None
    year: Optional[str] = None
    hostel: Optional[str] = None
    bio: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    seller_verified: bool = False
    is_active: bool = True
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Profile":
        """Build a profile from a `profiles` row, ignoring unknown columns."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in record.items() if k in known}
        # Nullable booleans in the table.
        values["seller_verified"] = bool(values.get("seller_verified") or False)
        if values.get("is_active") is None:
            values["is_active"] = True
        values["email"] = values.get("email") or ""
        return cls(**values)

    def editable_fields(self) -> Dict[str, str]:
        return {name: getattr(self, name) or "" for name in EDITABLE_PROFILE_FIELDS}


def is_profile_complete(profile: Optional[Profile]) -> bool:
    if profile is None:
        return False
    return all((getattr(profile, name) or "").strip() for name in REQUIRED_PROFILE_FIELDS)


def missing_profile_fields(values: Mapping[str, Any]) -> tuple:
    return tuple(
        name for name in REQUIRED_PROFILE_FIELDS
        if not str(values.get(name) or "").strip()
    )


@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time view of the session; completeness is derived on read."""

    identity: Optional[Identity] = None
    profile: Optional[Profile] = None
    is_loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def is_profile_complete(self) -> bool:
        return is_profile_complete(self.profile)
