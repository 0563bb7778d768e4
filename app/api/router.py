from fastapi import APIRouter
from app.api.routes import presence

api = APIRouter(prefix="/api")
api.include_router(presence.router, tags=["presence"])
