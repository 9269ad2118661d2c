"""Experiences API routes."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Response, status

from ...exceptions import UnknownId
from ...schemas.experiences import ExperienceIn, ExperienceModel
from ...services.store import store

router = APIRouter(prefix="/experiences", tags=["experiences"])


@router.get("", response_model=List[ExperienceModel], summary="List experiences")
async def list_experiences(
    owner: Optional[str] = None, participant: Optional[str] = None
) -> List[ExperienceModel]:
    """List experiences, optionally those of one user.

    Args:
        owner: Keep experiences owned by this user id.
        participant: Keep experiences this user id takes part in.
            Combined with ``owner`` as OR, not AND.
    """
    return store.list_experiences(owner=owner, participant=participant)


@router.post(
    "",
    response_model=ExperienceModel,
    status_code=status.HTTP_201_CREATED,
    summary="Add an experience",
)
async def add_experience(experience: ExperienceIn) -> ExperienceModel:
    return store.add_experience(experience)


@router.get("/{exp_id}", response_model=ExperienceModel, summary="Get one experience")
async def get_experience(exp_id: str) -> ExperienceModel:
    try:
        return store.get_experience(exp_id)
    except UnknownId as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.delete(
    "/{exp_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an experience"
)
async def delete_experience(exp_id: str) -> Response:
    try:
        store.delete_experience(exp_id)
    except UnknownId as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
