from models.base_model import Base, BaseModel, SingleUseTokenMixin


class PasswordReset(SingleUseTokenMixin, BaseModel, Base):
    """Single-use password reset token, keyed by email (24 h by default)."""

    __tablename__ = "password_resets"
