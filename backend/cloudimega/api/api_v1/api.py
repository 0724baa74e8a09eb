from fastapi import APIRouter

from cloudimega.api.api_v1.endpoints import login, users, shares, public

api_router = APIRouter()
api_router.include_router(login.router, prefix="/login", tags=["login"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(shares.router, prefix="/shares", tags=["shares"])
api_router.include_router(public.router, prefix="/s", tags=["public"])
