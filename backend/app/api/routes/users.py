"""Users API routes."""

from typing import List

from fastapi import APIRouter, HTTPException, Response, status

from ...exceptions import DuplicateMail, UnknownId
from ...schemas.users import UserIn, UserModel
from ...services.store import store

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserModel], summary="List users")
async def list_users() -> List[UserModel]:
    return store.list_users()


@router.post(
    "",
    response_model=UserModel,
    status_code=status.HTTP_201_CREATED,
    summary="Add a user",
)
async def add_user(user: UserIn) -> UserModel:
    try:
        return store.add_user(user)
    except DuplicateMail as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


@router.get("/{user_id}", response_model=UserModel, summary="Get one user")
async def get_user(user_id: str) -> UserModel:
    try:
        return store.get_user(user_id)
    except UnknownId as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.put("/{user_id}", response_model=UserModel, summary="Replace a user")
async def update_user(user_id: str, user: UserIn) -> UserModel:
    try:
        return store.update_user(user_id, user)
    except UnknownId as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except DuplicateMail as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


@router.delete(
    "/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a user"
)
async def delete_user(user_id: str) -> Response:
    try:
        store.delete_user(user_id)
    except UnknownId as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
