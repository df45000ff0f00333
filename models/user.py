import enum

from models.base_model import Base, BaseModel
from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship

from services import password as password_service


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class User(BaseModel, Base):
    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    # nullable: an account can exist before a password is ever set
    password_hash = Column(String(255), nullable=True)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    role = Column(String(16), nullable=False, default=UserRole.USER.value)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    avatar = Column(String(2048), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @password.setter
    def password(self, value):
        """Store a password, hashing it unless it already looks hashed."""
        if not value:
            self.password_hash = None
        elif password_service.looks_hashed(value):
            self.password_hash = value
        else:
            self.password_hash = password_service.hash_password(value)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self):
        return f"<User {self.email}>"
