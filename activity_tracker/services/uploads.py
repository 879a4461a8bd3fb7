from __future__ import annotations

import logging
import os
import uuid

from fastapi import Request, UploadFile

from activity_tracker.core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png")
UPLOADS_URL_PATH = "/uploads"

AVATARS_DIR = "avatars"
ACTIVITY_PHOTOS_DIR = "activity-photos"


class UploadError(ValueError):
    pass


def save_image_upload(
    request: Request,
    file: UploadFile | None,
    *,
    subdir: str,
    owner_id: int,
    uploads_dir: str | None = None,
) -> str:
    """Store an image under the uploads dir and return its absolute URL."""
    limit = settings.MAX_UPLOAD_BYTES
    data = file.file.read(limit + 1) if file is not None else b""
    if file is None or not data:
        raise UploadError("Nie przesłano pliku.")
    if len(data) > limit:
        raise UploadError("Plik jest za duży.")

    ext = os.path.splitext(file.filename or "")[1].lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise UploadError("Tylko pliki .jpg, .jpeg, .png są dozwolone.")

    dir_path = os.path.join(uploads_dir or settings.UPLOADS_DIR, subdir)
    os.makedirs(dir_path, exist_ok=True)

    filename = f"{owner_id}_{uuid.uuid4()}{ext}"
    with open(os.path.join(dir_path, filename), "wb") as out:
        out.write(data)

    logger.info(
        "Image uploaded",
        extra={"subdir": subdir, "owner_id": owner_id, "file_name": filename, "size_bytes": len(data)},
    )
    return f"{request.url.scheme}://{request.url.netloc}{UPLOADS_URL_PATH}/{subdir}/{filename}"
