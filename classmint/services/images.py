from __future__ import annotations

import hashlib
import io
import os
from typing import BinaryIO, Optional

from PIL import Image, ImageDraw, ImageOps, UnidentifiedImageError
from werkzeug.utils import secure_filename

from classmint.config import settings

AWARD_SUBFOLDER = "awards"
MEDIA_URL_PREFIX = "/awards/media"

# Gradient end-points for generated artwork, picked deterministically per title
_PALETTES = [
    ((250, 204, 21), (249, 115, 22)),
    ((192, 132, 252), (236, 72, 153)),
    ((96, 165, 250), (34, 211, 238)),
    ((74, 222, 128), (16, 185, 129)),
    ((248, 113, 113), (244, 63, 94)),
    ((129, 140, 248), (139, 92, 246)),
]


def allowed_image(filename: str) -> bool:
    _, ext = os.path.splitext(filename or "")
    return ext.lstrip(".").lower() in settings.ALLOWED_IMAGE_EXTS


def open_image(stream: BinaryIO) -> Image.Image:
    """Decode award artwork. Anything Pillow cannot read is a ValueError."""
    try:
        img = Image.open(stream)
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError("The uploaded file is not a readable image") from e
    return img


def square(img: Image.Image, size: int) -> Image.Image:
    # ImageOps.fit crops around the centre before scaling
    return ImageOps.fit(img.convert("RGBA"), (size, size), method=Image.LANCZOS)


def media_dir(media_root: Optional[str] = None) -> str:
    return os.path.join(media_root or settings.MEDIA_ROOT, AWARD_SUBFOLDER)


def save_png(pil: Image.Image, name_key: str, media_root: Optional[str] = None) -> str:
    """
    Write artwork as <slug>-<hash>.png in the awards media folder and return
    its URL under /awards/media. Identical artwork for the same name reuses one file.
    """
    payload = io.BytesIO()
    pil.save(payload, format="PNG", optimize=True)
    data = payload.getvalue()

    slug = secure_filename(name_key).lower() or "award"
    filename = f"{slug}-{hashlib.sha1(data).hexdigest()[:8]}.png"
    target_dir = media_dir(media_root)
    os.makedirs(target_dir, exist_ok=True)
    with open(os.path.join(target_dir, filename), "wb") as fh:
        fh.write(data)
    return f"{MEDIA_URL_PREFIX}/{filename}"


def store_uploaded_art(data: bytes, filename: str, name_key: str, media_root: Optional[str] = None) -> str:
    """Validate an uploaded image, square it and save it. Raises ValueError on bad input."""
    if not allowed_image(filename):
        raise ValueError(f"Unsupported image type: {filename}")
    if len(data) > settings.MAX_IMAGE_BYTES:
        raise ValueError("Image is too large")
    img = square(open_image(io.BytesIO(data)), settings.AWARD_IMAGE_SIZE)
    return save_png(img, name_key, media_root)


def generate_award_art(title: str, size: Optional[int] = None) -> Image.Image:
    """Render a diagonal gradient disc whose colours are derived from the title."""
    size = size or settings.AWARD_IMAGE_SIZE
    digest = hashlib.md5((title or "").strip().lower().encode("utf-8")).hexdigest()
    start, end = _PALETTES[int(digest, 16) % len(_PALETTES)]

    gradient = Image.new("RGBA", (size, size))
    draw = ImageDraw.Draw(gradient)
    span = 2 * (size - 1) or 1
    for offset in range(2 * size - 1):
        t = offset / span
        colour = tuple(int(a + (b - a) * t) for a, b in zip(start, end)) + (255,)
        draw.line([(offset, 0), (0, offset)], fill=colour)

    mask = Image.new("L", (size, size), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, size - 1, size - 1), fill=255)
    art = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    art.paste(gradient, (0, 0), mask)
    return art


def store_generated_art(title: str, media_root: Optional[str] = None) -> str:
    return save_png(generate_award_art(title), title, media_root)
