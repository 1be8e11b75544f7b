# FILE: adwall/services/upload_service.py
import logging
import os
import random
import shutil
import time
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional

from adwall.core.config import UPLOAD_DIR, MAX_UPLOAD_BYTES
from adwall.core.errors import NotFoundError, ValidationFailed

logger = logging.getLogger("adwall.uploads")

ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "video/mp4",
    "video/webm",
    "video/ogg",
}

PUBLIC_PREFIX = "/uploads"


def upload_dir() -> Path:
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    return UPLOAD_DIR


def _unique_name(field: str, original: str) -> str:
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{field}-{suffix}{Path(original or '').suffix}"


def _safe_path(filename: str) -> Path:
    name = os.path.basename(filename or "")
    if not name or name in {".", ".."}:
        raise NotFoundError("File not found")
    return upload_dir() / name


def save_upload(
        stream: BinaryIO,
        original_name: str,
        content_type: Optional[str],
        field: str = "file",
) -> dict:
    if content_type not in ALLOWED_MIME_TYPES:
        raise ValidationFailed("Unsupported file type")

    filename = _unique_name(field, original_name)
    target = upload_dir() / filename

    with open(target, "wb") as out:
        shutil.copyfileobj(stream, out)

    size = target.stat().st_size
    if size > MAX_UPLOAD_BYTES:
        target.unlink(missing_ok=True)
        raise ValidationFailed("File too large")

    logger.info("Stored upload %s (%d bytes, %s)", filename, size, content_type)
    return {
        "url": f"{PUBLIC_PREFIX}/{filename}",
        "filename": filename,
        "original_name": original_name,
        "size": size,
        "mimetype": content_type,
    }


def list_uploads() -> List[str]:
    return sorted(p.name for p in upload_dir().iterdir() if p.is_file())


def delete_upload(filename: str) -> None:
    path = _safe_path(filename)
    if not path.is_file():
        raise NotFoundError("File not found")
    path.unlink()


def remove_media(urls: Iterable[str]) -> int:
    """Best-effort removal of the files behind an ad's media urls."""
    removed = 0
    for url in urls or []:
        name = str(url).rstrip("/").split("/")[-1]
        if not name:
            continue
        path = upload_dir() / os.path.basename(name)
        if not path.is_file():
            continue
        try:
            path.unlink()
            removed += 1
        except OSError as exc:
            logger.warning("Could not remove media file %s: %s", path, exc)
    return removed
