from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from sqlalchemy.sql import func
from case_portal.database import Base

# Broadcast notification created by an administrator.
# Each targeted portal receives personal copies linked back through notification_id.
class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), default="info", nullable=False)
    priority = Column(String(20), default="normal", nullable=False)
    target_portals = Column(JSON, nullable=False, default=list)
    recipient_count = Column(Integer, default=0)
    created_by = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
