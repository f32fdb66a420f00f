"""
API v1 routes aggregation
"""
from fastapi import APIRouter
from app.api.v1 import (
    auth, users, social, groups, chat, jobs, applications
)

api_router = APIRouter()

# Authentication
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])

# Users
api_router.include_router(users.router)

# Friend requests and friendships
api_router.include_router(social.router)

# Groups
api_router.include_router(groups.router)

# Chat
api_router.include_router(chat.router)

# Job postings and applications
api_router.include_router(jobs.router)
api_router.include_router(applications.router)
