"""FastAPI endpoints for the Identity context."""

from fastapi import APIRouter, Depends

from identity.api.schemas import RegisterUserRequest, UserResponse
from identity.user.registration import find_user, register_user
from shared.api import get_database

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", status_code=201, response_model=UserResponse)
def register(body: RegisterUserRequest, database=Depends(get_database)):
    with database.unit_of_work() as session:
        return register_user(
            session,
            username=body.username,
            email=body.email,
            full_name=body.full_name,
            role=body.role,
        )


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, database=Depends(get_database)):
    with database.unit_of_work() as session:
        return find_user(session, user_id)
