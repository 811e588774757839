"""User domain models."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UserType(str, Enum):
    """User type enumeration. Fixed at registration."""
    VOLUNTEER = "volunteer"
    DISABLED = "disabled"


class User(BaseModel):
    """A registered user. ``points`` is only present for volunteers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    email: Optional[str] = None
    type: UserType
    name: Optional[str] = None
    surname: Optional[str] = None
    tel: Optional[str] = None
    points: Optional[int] = Field(None, ge=0)
    last_login_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "User":
        return cls.model_validate(dict(row))

    @property
    def is_volunteer(self) -> bool:
        return self.type == UserType.VOLUNTEER

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def contact_info(self) -> Dict[str, Any]:
        """Fields a volunteer assigned to this user's report may see."""
        return {"name": self.name, "surname": self.surname, "tel": self.tel, "email": self.email}


@dataclass(frozen=True)
class Session:
    """The verified caller of one request.

    Built per request from the identity provider and the user record; the user
    store stays the source of truth for everything else.
    """
    user_id: str
    user_type: UserType
    email: Optional[str] = None

    @property
    def is_volunteer(self) -> bool:
        return self.user_type == UserType.VOLUNTEER

    @property
    def is_disabled(self) -> bool:
        return self.user_type == UserType.DISABLED


class UserRegister(BaseModel):
    """Model for user registration after identity verification."""
    type: str
    name: Optional[str] = None
    surname: Optional[str] = None
    tel: Optional[str] = None


class UserUpdate(BaseModel):
    """Model for profile edits. Empty values are ignored."""
    name: Optional[str] = None
    surname: Optional[str] = None
    tel: Optional[str] = None
