from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from video_library.repositories.user_repository import UserRecord


class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, max_length=1024)
    name: str | None = Field(default=None, max_length=200)


class RegisterResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    success: bool = True
    user_id: int = Field(alias="userId")


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, max_length=1024)


class UserProfile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    email: str
    name: str

    @classmethod
    def from_record(cls, record: UserRecord) -> UserProfile:
        return cls(id=record.id, email=record.email, name=record.name)


class LoginResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool = True
    user: UserProfile
    token: str
