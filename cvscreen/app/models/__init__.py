from .applicant import Applicant
from .document import Document, DocumentStatus
from .job import Job
from .screening_result import ScreeningResult, ScreeningStatus
from .user import User

__all__ = [
    "Applicant",
    "Document",
    "DocumentStatus",
    "Job",
    "ScreeningResult",
    "ScreeningStatus",
    "User",
]
