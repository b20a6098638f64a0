import logging
import time
from pathlib import Path

from ..core.config import settings

logger = logging.getLogger(__name__)

PROOF_ROUTE = "/proofs"

# content type -> file extensions stored for it, first one is the default
IMAGE_TYPES: dict[str, tuple[str, ...]] = {
    "image/png": (".png",),
    "image/jpeg": (".jpg", ".jpeg"),
    "image/gif": (".gif",),
    "image/webp": (".webp",),
    "image/heic": (".heic",),
}


class ProofRejectedError(ValueError):
    pass


def proof_dir() -> Path:
    upload_dir = Path(settings.PROOF_UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def public_url(file_name: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}{PROOF_ROUTE}/{file_name}"


def proof_extension(filename: str | None, content_type: str | None) -> str:
    """Pick the stored extension for an upload, refusing anything that is not a plain raster image."""
    media_type = (content_type or "").split(";")[0].strip().lower()
    if not media_type.startswith("image/"):
        raise ProofRejectedError("File must be an image")
    allowed = IMAGE_TYPES.get(media_type)
    if allowed is None:
        raise ProofRejectedError(f"Unsupported image type {media_type}")

    file_ext = Path(filename).suffix.lower() if filename else ""
    if not file_ext:
        return allowed[0]
    if file_ext not in allowed:
        raise ProofRejectedError(f"File extension {file_ext} does not match {media_type}")
    return file_ext


def save_proof(task_id: str, *, filename: str | None, content_type: str | None, contents: bytes) -> tuple[Path, str]:
    """Store a proof photo for ``task_id`` and return ``(file_path, public_url)``.

    Files are named ``<task_id>_<epoch millis>.<ext>`` so repeated uploads for
    the same task never overwrite each other.
    """
    file_ext = proof_extension(filename, content_type)
    if not contents:
        raise ProofRejectedError("File is empty")
    if len(contents) > settings.MAX_PROOF_BYTES:
        raise ProofRejectedError(f"File is larger than {settings.MAX_PROOF_BYTES} bytes")

    file_name = f"{task_id}_{int(time.time() * 1000)}{file_ext}"
    file_path = proof_dir() / file_name

    with open(file_path, "wb") as f:
        f.write(contents)
    logger.info(f"Stored proof for task {task_id} at {file_path} ({len(contents)} bytes)")
    return file_path, public_url(file_name)


def delete_proof(file_path: Path) -> None:
    try:
        file_path.unlink()
    except FileNotFoundError:
        pass
