from models.base_model import Base, BaseModel, SingleUseTokenMixin


class EmailVerification(SingleUseTokenMixin, BaseModel, Base):
    __tablename__ = "email_verifications"
