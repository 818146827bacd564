from fastapi import APIRouter
from tapago.api.v1.endpoints import auth, users, friends, debts

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(friends.router, prefix="/friends", tags=["friends"])
api_router.include_router(debts.router, prefix="/debts", tags=["debts"])
