"""Filesystem storage for medical attachments: `<base>/<pet_id>/<record_id>/<name>-<unique><ext>`."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from starlette.concurrency import run_in_threadpool

from src.shared.logging import get_logger

logger = get_logger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True, slots=True)
class StoredFile:
    path: str
    size: int


def _safe_stem(filename: str) -> tuple[str, str]:
    name = Path(filename or "file").name
    stem, ext = Path(name).stem, Path(name).suffix.lower()
    stem = _UNSAFE.sub("-", stem).strip("-.")[:80] or "file"
    return stem, _UNSAFE.sub("", ext)[:10]


class LocalFileStorage:
    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    def _target(self, pet_id: int, record_id: int, filename: str) -> Path:
        stem, ext = _safe_stem(filename)
        return self.base_dir / str(pet_id) / str(record_id) / f"{stem}-{uuid4().hex[:12]}{ext}"

    async def save(self, pet_id: int, record_id: int, filename: str, content: bytes) -> StoredFile:
        target = self._target(pet_id, record_id, filename)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

        await run_in_threadpool(_write)
        logger.info("storage.saved", path=str(target), size=len(content))
        return StoredFile(path=str(target), size=len(content))

    async def exists(self, path: str) -> bool:
        return await run_in_threadpool(Path(path).is_file)

    async def delete(self, path: str) -> None:
        await run_in_threadpool(Path(path).unlink, True)
