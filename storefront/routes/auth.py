"""Session introspection for the admin back-office."""

from fastapi import APIRouter, Request

from storefront.auth import user_from_request

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.get("/admin/check")
async def admin_check(request: Request):
    """Always 200; an absent or invalid cookie reads as logged out."""
    user = user_from_request(request)
    if user is None:
        return {"isAdmin": False, "isAuthenticated": False}
    return {
        "isAdmin": user.is_admin,
        "isAuthenticated": True,
        "user": user.to_dict(),
    }
