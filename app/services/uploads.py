import logging
import os
import re
import secrets
import time
from typing import Tuple

from fastapi import HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.config import settings

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


def sanitize_filename(original: str, content_type: str) -> str:
    """``My Photo!.PNG`` -> ``My_Photo_<millis>_<hex>.png``"""
    base, ext = os.path.splitext(os.path.basename(original or ""))
    base = re.sub(r"[^A-Za-z0-9_-]+", "_", base).strip("_")[:50] or "image"
    ext = ext.lower()
    if ext not in (".jpg", ".jpeg", ".png", ".webp"):
        ext = EXTENSIONS.get(content_type, ".jpg")
    return f"{base}_{int(time.time() * 1000)}_{secrets.token_hex(4)}{ext}"


def _write_file(path: str, content: bytes) -> None:
    with open(path, "wb") as f:
        f.write(content)


async def save_image(file: UploadFile) -> Tuple[str, str]:
    if file.content_type not in settings.UPLOAD_ALLOWED_TYPES:
        raise HTTPException(
            status_code=415,
            detail="Only JPEG, PNG and WEBP images are allowed",
        )

    content = await file.read(settings.UPLOAD_MAX_BYTES + 1)
    if len(content) > settings.UPLOAD_MAX_BYTES:
        raise HTTPException(status_code=413, detail="File too large")
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")

    filename = sanitize_filename(file.filename, file.content_type)
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    await run_in_threadpool(_write_file, os.path.join(settings.UPLOAD_DIR, filename), content)

    logger.info(f"Stored upload {filename} ({len(content)} bytes)")
    return filename, f"/uploads/{filename}"
