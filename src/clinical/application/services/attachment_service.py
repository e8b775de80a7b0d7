from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence

from src.clinical.domain.entities.attachment import ALLOWED_MIME_TYPES, AttachmentCategory, MedicalAttachment
from src.clinical.infrastructure.storage.local_storage import LocalFileStorage, StoredFile
from src.shared.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from src.shared.logging import get_logger
from src.shared.roles import Role
from src.shared.security import CallerIdentity

if TYPE_CHECKING:
    from src.unit_of_work import ClinicUnitOfWork

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class UploadedFile:
    filename: str
    content_type: str
    content: bytes


def _category(value: Optional[str]) -> AttachmentCategory:
    if not value:
        return AttachmentCategory.OTHER
    try:
        return AttachmentCategory(value)
    except ValueError:
        allowed = ", ".join(c.value for c in AttachmentCategory)
        raise InvalidInputError(f"category must be one of: {allowed}", details={"category": value})


def _nth(values: Optional[Sequence[Optional[str]]], index: int) -> Optional[str]:
    if not values or index >= len(values):
        return None
    return values[index]


class AttachmentService:
    def __init__(
        self,
        uow: "ClinicUnitOfWork",
        storage: LocalFileStorage,
        *,
        max_bytes: int = 10 * 1024 * 1024,
        max_files: int = 10,
    ) -> None:
        self._uow = uow
        self._storage = storage
        self._max_bytes = max_bytes
        self._max_files = max_files

    @staticmethod
    def _require_veterinarian(caller: CallerIdentity) -> None:
        if not caller.has_role(Role.VETERINARIAN):
            raise ForbiddenError("Only veterinarians can manage medical attachments")

    def _validate(self, files: Sequence[UploadedFile]) -> None:
        if not files:
            raise InvalidInputError("At least one file is required")
        if len(files) > self._max_files:
            raise InvalidInputError(f"At most {self._max_files} files can be uploaded at once")
        for f in files:
            if f.content_type not in ALLOWED_MIME_TYPES:
                raise InvalidInputError(
                    "File type not allowed", details={"file": f.filename, "mime_type": f.content_type}
                )
            if len(f.content) > self._max_bytes:
                raise InvalidInputError(
                    f"File exceeds the maximum size of {self._max_bytes} bytes", details={"file": f.filename}
                )

    async def upload(
        self,
        record_id: int,
        caller: CallerIdentity,
        files: Sequence[UploadedFile],
        categories: Optional[Sequence[Optional[str]]] = None,
        descriptions: Optional[Sequence[Optional[str]]] = None,
    ) -> List[MedicalAttachment]:
        """Categories and descriptions pair with files by position."""
        self._require_veterinarian(caller)
        self._validate(files)
        resolved = [_category(_nth(categories, i)) for i in range(len(files))]

        stored: List[StoredFile] = []
        try:
            async with self._uow as uow:
                record = await uow.medical_records.get(record_id)
                if record is None:
                    raise NotFoundError("Medical record not found")

                rows = []
                for i, f in enumerate(files):
                    saved = await self._storage.save(record.pet_id, record.id, f.filename, f.content)
                    stored.append(saved)
                    description = (_nth(descriptions, i) or "").strip() or None
                    rows.append(
                        MedicalAttachment(
                            record_id=record.id,
                            file_name=f.filename,
                            category=resolved[i],
                            file_url=saved.path,
                            file_size=saved.size,
                            mime_type=f.content_type,
                            uploaded_by=caller.id,
                            description=description,
                        )
                    )
                attachments = await uow.attachments.add_all(rows)
                await uow.commit()
        except Exception:
            for saved in stored:
                await self._storage.delete(saved.path)
            raise

        logger.info("attachments.uploaded", record_id=record_id, count=len(attachments))
        return attachments

    async def list_for_record(self, record_id: int) -> List[MedicalAttachment]:
        async with self._uow as uow:
            return await uow.attachments.list_for_record(record_id)

    async def get_download(self, attachment_id: int) -> MedicalAttachment:
        async with self._uow as uow:
            attachment = await uow.attachments.get(attachment_id)
        if attachment is None or not await self._storage.exists(attachment.file_url):
            raise NotFoundError("Attachment not found")
        return attachment

    async def delete(self, attachment_id: int, caller: CallerIdentity) -> None:
        self._require_veterinarian(caller)
        async with self._uow as uow:
            if not await uow.attachments.soft_delete(attachment_id):
                raise NotFoundError("Attachment not found")
            await uow.commit()
        logger.info("attachments.deleted", attachment_id=attachment_id)
