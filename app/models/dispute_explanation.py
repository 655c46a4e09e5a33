from sqlalchemy import Column, Integer, String, Text, UniqueConstraint

from app.core.database import Base
from app.models.base import TimestampMixin


class DisputeExplanation(Base, TimestampMixin):
    __tablename__ = "dispute_explanations"
    __table_args__ = (
        UniqueConstraint("user_id", "dispute_id", name="uq_dispute_explanations_user_dispute"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    dispute_id = Column(String(64), nullable=False)
    explanation = Column(Text, nullable=False)
