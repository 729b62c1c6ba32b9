from fastapi import APIRouter

from .groups import router as groups_router
from .members import router as members_router

router = APIRouter()

# The sub-routers declare "" paths, so the prefix has to be set here
router.include_router(groups_router, prefix="/groups")
router.include_router(members_router, prefix="/groups")
