"""Pydantic request/response schemas for the Identity API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from identity.user.user import UserRole


class RegisterUserRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: str = Field(max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    full_name: str | None = Field(default=None, max_length=200)
    role: UserRole = UserRole.CUSTOMER

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "username": "jdoe",
                    "email": "jdoe@example.com",
                    "full_name": "Jane Doe",
                    "role": "Customer",
                }
            ]
        }
    }


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    full_name: str | None = None
    role: str
    created_at: datetime
