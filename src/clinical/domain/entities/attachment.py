from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class AttachmentCategory(str, Enum):
    RADIOGRAPH = "radiograph"
    LAB_ANALYSIS = "lab_analysis"
    ULTRASOUND = "ultrasound"
    PHOTO = "photo"
    DOCUMENT = "document"
    OTHER = "other"


ALLOWED_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "video/mp4",
    "video/mpeg",
})


@dataclass(slots=True)
class MedicalAttachment:
    record_id: int
    file_name: str
    category: AttachmentCategory
    file_url: str
    file_size: int
    mime_type: str
    uploaded_by: int
    description: Optional[str] = None
    is_active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
