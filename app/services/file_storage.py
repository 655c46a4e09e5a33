import logging
import os
import re
import secrets
import time
from pathlib import Path
from typing import BinaryIO

from app.core.config import get_settings
from app.core.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/jpg"}
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg"}
_CHUNK_SIZE = 64 * 1024
_CONTENT_TYPE_EXTENSIONS = {"image/png": ".png", "image/jpeg": ".jpg", "image/jpg": ".jpg"}


def _storage_root() -> Path:
    return Path(get_settings().storage_root)


def _safe_component(value: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_]", "_", str(value or ""))
    return cleaned[:64] or "unknown"


def resolve_path(stored_path: str) -> Path:
    path = Path(stored_path)
    if path.is_absolute():
        return path
    return _storage_root() / path


def is_image_filename(filename: str | None) -> bool:
    return Path(str(filename or "")).suffix.lower() in IMAGE_EXTENSIONS


def save_upload(stream: BinaryIO, *, content_type: str | None, max_bytes: int) -> tuple[str, int]:
    """Copy an upload into the uploads directory.

    Returns the path relative to the storage root and the number of bytes
    written. Nothing is left on disk when the content type is refused or the
    stream exceeds ``max_bytes``.
    """
    normalized = str(content_type or "").split(";", 1)[0].strip().lower()
    if normalized not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(
            "Only PNG and JPEG images are allowed. Please convert other documents to screenshots before uploading."
        )

    uploads_dir = get_settings().uploads_dir
    uploads_dir.mkdir(parents=True, exist_ok=True)
    name = f"{secrets.token_hex(16)}{_CONTENT_TYPE_EXTENSIONS[normalized]}"
    target = uploads_dir / name

    size = 0
    try:
        with open(target, "wb") as out:
            while True:
                chunk = stream.read(_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise ValidationError(f"File too large. Maximum upload size is {max_bytes} bytes.")
                out.write(chunk)
    except Exception:
        target.unlink(missing_ok=True)
        raise

    if size == 0:
        target.unlink(missing_ok=True)
        raise ValidationError("Uploaded file is empty")

    return str(Path("uploads") / name), size


def remove_file(stored_path: str | None) -> bool:
    """Best-effort delete; failures are logged, never raised."""
    if not stored_path:
        return False
    path = resolve_path(stored_path)
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.warning("Could not remove stored file %s: %s", path, exc)
        return False


def new_packet_path(dispute_id: str) -> tuple[str, Path]:
    packets_dir = get_settings().packets_dir
    packets_dir.mkdir(parents=True, exist_ok=True)
    timestamp = int(time.time() * 1000)
    filename = f"dispute_{_safe_component(dispute_id)}_{timestamp}_{secrets.token_hex(4)}.pdf"
    return str(Path("packets") / filename), packets_dir / filename


def file_exists(stored_path: str | None) -> bool:
    return bool(stored_path) and os.path.isfile(resolve_path(stored_path))
