# identity/models/users.py
from sqlalchemy import Column, String, Boolean, Text, Enum, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from identity.models.base import Base, TableMixin
from identity.core.security import generate_verification_code
import enum


class UserRole(str, enum.Enum):
    CLIENT = "client"
    OWNER = "owner"
    DELIVERY = "delivery"


class User(TableMixin, Base):
    email = Column(String(320), unique=True, nullable=False, index=True)
    password_hash = Column(Text, nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.CLIENT)
    verified = Column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return f"<User {self.id} {self.email} verified={self.verified}>"


class Verification(TableMixin, Base):
    code = Column(String(64), unique=True, nullable=False, index=True, default=generate_verification_code)
    # unique: at most one live verification per user
    user_id = Column(Uuid(as_uuid=True), ForeignKey("user.id", ondelete="CASCADE"), unique=True, nullable=False)

    user = relationship("User")
