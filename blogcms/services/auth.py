import logging
from typing import Optional, Tuple

from passlib.context import CryptContext
from sqlmodel import Session, select

from blogcms.core.clock import utcnow
from blogcms.models.admin_user import AdminUser

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

SESSION_KEY = "admin_id"


class AuthService:
    def __init__(self, session: Session):
        self.session = session

    def get_password_hash(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    def get_admin_by_username(self, username: str) -> Optional[AdminUser]:
        return self.session.exec(select(AdminUser).where(AdminUser.username == username.strip())).first()

    def get_admin(self, admin_id: int) -> Optional[AdminUser]:
        return self.session.get(AdminUser, admin_id)

    def authenticate(self, username: str, password: str) -> Optional[AdminUser]:
        admin = self.get_admin_by_username(username)
        # Same answer for unknown user and wrong password
        if not admin or not admin.is_active:
            return None
        if not self.verify_password(password, admin.password_hash):
            return None
        return admin

    def create_or_update_admin(self, username: str, password: str) -> Tuple[AdminUser, bool]:
        """Create the admin, or reset the password of an existing one. Returns (admin, created)."""
        admin = self.get_admin_by_username(username)
        created = admin is None
        if created:
            admin = AdminUser(username=username.strip(), password_hash=self.get_password_hash(password))
        else:
            admin.password_hash = self.get_password_hash(password)
            admin.is_active = True
            admin.updated_at = utcnow()

        self.session.add(admin)
        self.session.commit()
        self.session.refresh(admin)
        logger.info("Admin %s %s", admin.username, "created" if created else "password updated")
        return admin, created
