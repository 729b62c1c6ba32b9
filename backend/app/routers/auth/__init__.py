from fastapi import APIRouter

from .account import router as account_router

router = APIRouter()

# No prefix here; app.main mounts the package under /auth
# (e.g. /auth/login, /auth/logout, /auth/me).
router.include_router(account_router)
