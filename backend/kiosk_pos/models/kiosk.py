from sqlalchemy import Column, Integer, String, UniqueConstraint, Boolean, DateTime
from sqlalchemy.orm import declarative_base

from kiosk_pos.core.timeutils import utcnow


Base = declarative_base()


class Kiosk(Base):
    __tablename__ = "kiosks"
    __table_args__ = (UniqueConstraint("slug", name="uq_kiosk_slug"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, index=True)
    timezone = Column(String(64), nullable=True)  # IANA name, falls back to settings.default_timezone
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
