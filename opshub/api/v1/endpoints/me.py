from fastapi import APIRouter, Depends

from opshub.schemas.me import MeOut
from opshub.services.auth import Actor, get_actor

router = APIRouter()

@router.get("/me", response_model=MeOut)
async def me(actor: Actor = Depends(get_actor)) -> MeOut:
    return MeOut(
        user_id=actor.user_id,
        name=actor.name,
        email=actor.email,
        role=actor.role.value,
        team_id=actor.team_id,
    )
