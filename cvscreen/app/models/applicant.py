from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base

APPLICANT_STATUS_APPLIED = "Applied"
APPLICANT_STATUS_SCREENED = "Screened"


class Applicant(Base):
    __tablename__ = "applicants"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(200), index=True, nullable=False)
    # Owned by the applicant registry; the screening pipeline only ever sets "Screened".
    status = Column(String(50), nullable=False, default=APPLICANT_STATUS_APPLIED)
    applied_at = Column(DateTime(timezone=True), server_default=func.now())
    last_updated = Column(DateTime(timezone=True), nullable=True)

    job = relationship("Job", back_populates="applicants")
    documents = relationship("Document", back_populates="applicant")
    screening_results = relationship("ScreeningResult", back_populates="applicant")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
