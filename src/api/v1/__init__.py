"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.invitations import account_invitations_router, invitations_router

router = APIRouter()
router.include_router(account_invitations_router)
router.include_router(invitations_router)
