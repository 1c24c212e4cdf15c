# api/v1/router.py
from fastapi import APIRouter

from . import contact, feedback, generate, meals, notify, plan, prefs

api_router = APIRouter()

api_router.include_router(generate.router, prefix="/generate", tags=["Generate"])
api_router.include_router(meals.router, prefix="/meals", tags=["Meals"])
api_router.include_router(plan.router, prefix="/plan", tags=["Week plan"])
api_router.include_router(notify.router, prefix="/notify", tags=["Notifications"])
api_router.include_router(feedback.router, prefix="/feedback", tags=["Feedback"])
api_router.include_router(contact.router, prefix="/contact", tags=["Contact"])

# preferences live *under* the user resource
api_router.include_router(
    prefs.router,
    prefix="/users",          # results in /users/me/preferences
    tags=["Preferences"],
)
