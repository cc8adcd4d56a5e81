import enum

from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class DocumentStatus(str, enum.Enum):
    """Extraction lifecycle of an uploaded CV."""

    UPLOADED = "Uploaded"
    PROCESSING = "Processing"
    PROCESSED = "Processed"
    ERROR = "Error"

    @property
    def is_terminal(self) -> bool:
        return self in (DocumentStatus.PROCESSED, DocumentStatus.ERROR)


class Document(Base):
    __tablename__ = "cv_documents"

    id = Column(Integer, primary_key=True, index=True)
    applicant_id = Column(Integer, ForeignKey("applicants.id"), nullable=False, index=True)
    original_filename = Column(String(255), nullable=False)
    stored_filename = Column(String(255), nullable=False)
    content_type = Column(String(120), nullable=False)
    size_bytes = Column(Integer, nullable=False, default=0)
    # Lower-case with leading dot, e.g. ".pdf"
    file_extension = Column(String(20), nullable=False)
    # Relative path under UPLOAD_DIR (portable across machines)
    file_path = Column(String(500), nullable=False)
    extracted_text = Column(Text, nullable=True)
    status = Column(
        SQLEnum(
            DocumentStatus,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=DocumentStatus.UPLOADED,
    )
    error_message = Column(Text, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    applicant = relationship("Applicant", back_populates="documents")
