import enum

from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class ScreeningStatus(str, enum.Enum):
    """Lifecycle of one AI evaluation."""

    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ScreeningStatus.COMPLETED, ScreeningStatus.FAILED)


class ScreeningResult(Base):
    __tablename__ = "screening_results"

    id = Column(Integer, primary_key=True, index=True)
    applicant_id = Column(Integer, ForeignKey("applicants.id"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    overall_score = Column(Integer, nullable=False, default=0)  # 0-100
    summary = Column(Text, nullable=False, default="")
    strengths = Column(Text, nullable=False, default="[]")  # JSON string list
    weaknesses = Column(Text, nullable=False, default="[]")  # JSON string list
    detailed_analysis = Column(Text, nullable=False, default="")
    recommendation = Column(String(500), nullable=True)
    status = Column(
        SQLEnum(
            ScreeningStatus,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ScreeningStatus.PROCESSING,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    error_message = Column(Text, nullable=True)

    applicant = relationship("Applicant", back_populates="screening_results")
    job = relationship("Job")
