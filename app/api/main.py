from fastapi import APIRouter

from app.api.routes import (
    courses,
    leaderboard,
    learn,
    login,
    messages,
    notifications,
    practice,
    shop,
    social,
    users,
    utils,
)

api_router = APIRouter()
api_router.include_router(login.router)
api_router.include_router(users.router)
api_router.include_router(utils.router)
api_router.include_router(courses.router)
api_router.include_router(learn.router)
api_router.include_router(shop.router)
api_router.include_router(leaderboard.router)
api_router.include_router(social.router)
api_router.include_router(notifications.router)
api_router.include_router(messages.router)
api_router.include_router(practice.router)
