from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    job_title = Column(String(200), nullable=False)
    job_description = Column(Text, nullable=True)
    department = Column(String(100), nullable=True)
    location = Column(String(100), nullable=True)
    # Free text or JSON string list; the prompt builder accepts both.
    required_skills = Column(Text, nullable=True)
    preferred_skills = Column(Text, nullable=True)
    responsibilities = Column(Text, nullable=True)
    # Optional explicit level (Entry/Mid/Senior/Lead/Executive); inferred from the description when empty.
    experience_level = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="jobs")
    applicants = relationship("Applicant", back_populates="job")
