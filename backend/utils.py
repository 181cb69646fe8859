# backend/utils.py
import logging
import time
from pathlib import Path
from typing import Iterable, List, Optional

from PIL import Image, ImageFilter, ImageOps

from .config import MAX_UPLOAD_BYTES

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"


class UploadError(ValueError):
    pass


def stored_filename(original_name: str, now_ms: Optional[int] = None) -> str:
    """`<unix-millis>-<basename>`; directory parts of the client name are dropped."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    base = Path((original_name or "").replace("\\", "/")).name or "upload"
    return f"{now_ms}-{base}"


def enhance_image(path: Path) -> None:
    """
    Light clean-up in place: fix EXIF orientation, autocontrast, a gentle
    unsharp mask and a 1200px bound. Files Pillow cannot read are left alone.
    """
    try:
        with Image.open(path) as src:
            fmt = src.format
            img = ImageOps.exif_transpose(src)
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB") if fmt == "JPEG" else img
            if img.mode in ("RGB", "L"):
                img = ImageOps.autocontrast(img)
                img = img.filter(ImageFilter.UnsharpMask(radius=1, percent=150, threshold=3))
            img.thumbnail((1200, 1200))
            img.load()
        if fmt == "JPEG":
            img.save(path, format=fmt, quality=90)
        else:
            img.save(path, format=fmt)
    except Exception as e:
        logger.info("Image enhancement skipped for %s: %s", path.name, e)


def _write_unique(upload_dir: Path, original_name: str, content: bytes) -> str:
    # "xb" refuses to clobber, so same-name files in one millisecond get the next slot
    now_ms = int(time.time() * 1000)
    while True:
        filename = stored_filename(original_name, now_ms)
        try:
            with open(upload_dir / filename, "xb") as f:
                f.write(content)
            return filename
        except FileExistsError:
            now_ms += 1


def save_upload(upload_file, upload_dir: Path) -> str:
    """
    Save one UploadFile into upload_dir and return its public path
    (`/uploads/<filename>`).
    """
    content_type = getattr(upload_file, "content_type", None) or ""
    if not content_type.startswith("image/"):
        raise UploadError("Only image files are allowed")

    content = upload_file.file.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        raise UploadError(f"File {upload_file.filename} exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit")

    filename = _write_unique(upload_dir, upload_file.filename, content)
    enhance_image(upload_dir / filename)
    return f"{UPLOAD_URL_PREFIX}/{filename}"


def save_uploads(files: Optional[Iterable], upload_dir: Path) -> List[str]:
    # no rollback: files saved before a failure stay on disk
    return [save_upload(f, upload_dir) for f in (files or []) if f is not None and f.filename]


def resolve_upload(upload_dir: Path, relative: str) -> Optional[Path]:
    """Map a request path under /uploads to a file inside upload_dir, or None."""
    root = upload_dir.resolve()
    candidate = (root / relative).resolve()
    if root != candidate and root not in candidate.parents:
        return None
    return candidate if candidate.is_file() else None
