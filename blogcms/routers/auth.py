import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from sqlmodel import Session

from blogcms.core.errors import AuthenticationError
from blogcms.db.session import get_session
from blogcms.models.admin_user import AdminUser
from blogcms.services.auth import SESSION_KEY, AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(session)


def get_admin_user(request: Request, service: AuthService = Depends(get_auth_service)) -> AdminUser:
    """Admin of the current session cookie, 401 otherwise"""
    admin_id = request.session.get(SESSION_KEY)
    admin: Optional[AdminUser] = service.get_admin(admin_id) if admin_id is not None else None
    if not admin or not admin.is_active:
        request.session.pop(SESSION_KEY, None)
        raise AuthenticationError("Admin login required")
    return admin


@router.post("/login")
def login(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    service: AuthService = Depends(get_auth_service),
):
    admin = service.authenticate(username, password)
    if not admin:
        logger.warning("Failed admin login for %s", username)
        request.session.pop(SESSION_KEY, None)
        raise AuthenticationError()

    if request.session.get(SESSION_KEY) == admin.id:
        return {"message": "Already logged in"}

    request.session[SESSION_KEY] = admin.id
    logger.info("Admin %s logged in", admin.username)
    return {"message": "Logged in", "username": admin.username}


@router.post("/logout")
def logout(request: Request, admin_user: AdminUser = Depends(get_admin_user)):
    request.session.clear()
    return {"message": "Logged out"}


@router.get("/me")
def get_current_admin(admin_user: AdminUser = Depends(get_admin_user)):
    """Get current admin profile"""
    return {
        "id": admin_user.id,
        "username": admin_user.username,
        "created_at": admin_user.created_at,
        "updated_at": admin_user.updated_at,
    }
