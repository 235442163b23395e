from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from kiosk_pos.models.kiosk import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("kiosk_id", "email", name="uq_users_kiosk_email"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False, default="cashier")
    kiosk_id = Column(Integer, ForeignKey("kiosks.id", ondelete="CASCADE"), nullable=False, index=True)

    kiosk = relationship("Kiosk")
