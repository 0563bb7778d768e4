from fastapi import APIRouter, Depends

from app.core.deps import get_relay
from app.services.relay import Relay

router = APIRouter(prefix="/users")

@router.get("")
def list_users(relay: Relay = Depends(get_relay)):
    return relay.user_list().model_dump()
