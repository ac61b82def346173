"""Domain Entities - Auth"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from uuid import UUID, uuid4
from typing import Optional

from domain.enums import UserRole
from domain.value_objects import utc_now


class User(BaseModel):
    """User Entity"""
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    image: Optional[str] = None
    role: UserRole = UserRole.CUSTOMER
    disabled: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def identity(self) -> "CallerIdentity":
        return CallerIdentity(user_id=self.user_id, role=self.role, email=self.email)


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str


class CallerIdentity(BaseModel):
    """Verified caller handed to the booking services by the auth layer"""
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    role: UserRole
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
