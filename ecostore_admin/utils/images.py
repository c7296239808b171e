# ecostore_admin/utils/images.py
import os
import io
import uuid
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List
from PIL import Image

logger = logging.getLogger(__name__)

# safe image extensions we keep for previews
ALLOWED_EXT = {".jpg", ".jpeg", ".png", ".webp", ".gif"}

PREVIEW_URL_PREFIX = "/api/previews"


def _ensure_dir(path: Path):
    path.mkdir(parents=True, exist_ok=True)


def _safe_ext(filename: str) -> str:
    _, ext = os.path.splitext(filename)
    return ext.lower()


@dataclass
class StagedFile:
    """A selected image that has not been uploaded yet."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class PreviewHandle:
    """
    Revocable local reference to a staged file. The handle owns the files it
    wrote; release() deletes them and the URL stops resolving.
    """
    token: str
    path: Path
    variants: List[Path] = field(default_factory=list)
    released: bool = False

    @property
    def url(self) -> str:
        return f"{PREVIEW_URL_PREFIX}/{self.token}"

    def release(self) -> None:
        if self.released:
            return
        for p in [self.path] + list(self.variants):
            try:
                p.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Could not remove preview file %s: %s", p, e)
        self.released = True


def create_preview(staged: StagedFile, base_dir, max_side: int = 300) -> PreviewHandle:
    """
    Write `staged` under base_dir as <token><ext> and, when Pillow can decode
    it, a <token>_thumb.jpg thumbnail no larger than max_side on either side.
    Returns the PreviewHandle that owns both files.
    """
    preview_dir = Path(base_dir)
    _ensure_dir(preview_dir)

    ext = _safe_ext(staged.filename or "")
    if ext not in ALLOWED_EXT:
        # try to detect from bytes via PIL format
        try:
            im = Image.open(io.BytesIO(staged.content))
            ext = f".{im.format.lower()}" if im.format else ".jpg"
        except Exception:
            ext = ".bin"

    token = uuid.uuid4().hex
    orig_path = preview_dir / f"{token}{ext}"
    with open(orig_path, "wb") as f:
        f.write(staged.content)

    handle = PreviewHandle(token=token, path=orig_path)

    try:
        im = Image.open(io.BytesIO(staged.content))
        im = im.convert("RGB")
        im.thumbnail((max_side, max_side))
        thumb_path = preview_dir / f"{token}_thumb.jpg"
        im.save(thumb_path, optimize=True, quality=85)
        handle.variants.append(thumb_path)
    except Exception:
        # not decodable: the original bytes still serve as the preview
        logger.debug("No thumbnail for %s", staged.filename)

    return handle
