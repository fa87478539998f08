"""Contrast preprocessing applied before local OCR."""
import io

from PIL import Image, ImageOps


def binarize(content: bytes, threshold: int = 128) -> bytes:
    """Convert an image to grayscale, then to pure black and white.

    Pixels brighter than ``threshold`` become white, the rest black. EXIF
    orientation is honoured so phone photos are not read sideways.
    """
    with Image.open(io.BytesIO(content)) as image:
        image = ImageOps.exif_transpose(image)
        gray = image.convert("L")
        bw = gray.point(lambda p: 255 if p > threshold else 0, mode="1")

        buffer = io.BytesIO()
        bw.save(buffer, format="PNG")
        return buffer.getvalue()
