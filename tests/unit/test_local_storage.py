import pytest

from src.clinical.infrastructure.storage.local_storage import LocalFileStorage

pytestmark = pytest.mark.anyio


async def test_save_places_file_under_pet_and_record(tmp_path):
    storage = LocalFileStorage(tmp_path)
    stored = await storage.save(3, 12, "../../x-ray scan.PNG", b"\x89PNG")
    assert stored.size == 4
    assert stored.path.startswith(str(tmp_path / "3" / "12"))
    assert stored.path.endswith(".png")
    assert "x-ray-scan-" in stored.path
    assert await storage.exists(stored.path)

    await storage.delete(stored.path)
    assert not await storage.exists(stored.path)
    await storage.delete(stored.path)


async def test_same_name_does_not_overwrite(tmp_path):
    storage = LocalFileStorage(tmp_path)
    a = await storage.save(1, 1, "lab.pdf", b"a")
    b = await storage.save(1, 1, "lab.pdf", b"b")
    assert a.path != b.path
