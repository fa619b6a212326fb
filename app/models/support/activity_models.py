from sqlalchemy import Column, Integer, String, Index
from app.core.db import Base
from app.models.base.mixins import TimestampMixin


class ActivityLog(Base, TimestampMixin):
    """Immutable audit log. APPEND-ONLY. Never updated, never deleted."""

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, index=True)
    actor_name = Column(String(150), nullable=False)
    message = Column(String, nullable=False)
    target_type = Column(String(50), nullable=True)
    target_id = Column(Integer, nullable=True)
    receipt_id = Column(Integer, nullable=True, index=True)

    __table_args__ = (Index("ix_activity_target", "target_type", "target_id"),)

    def __repr__(self):
        return f"<ActivityLog id={self.id} code={self.code}>"
