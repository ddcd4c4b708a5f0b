"""Best-effort extraction of embedded raster images.

Walks each page's ``/Resources`` → ``/XObject`` dictionary with pypdf and
decodes every ``/Subtype /Image`` object. JPEG streams are passed through;
everything else is decoded with Pillow and re-encoded as PNG. A failure on
one image never stops the others, and nothing here raises to the caller.
"""

import asyncio
import base64
import io
import logging
from typing import Awaitable, Callable, Optional

from beacon.config import settings
from beacon.schemas.slides import ExtractedImage

logger = logging.getLogger(__name__)

MAX_IMAGES = 20
MIN_IMAGE_SIDE = 32

DESCRIBE_PROMPT = (
    "Describe this image from a document in one or two short sentences, "
    "naming what it shows (chart, diagram, photo, logo) and its subject."
)

_COLOR_MODES = {"/DeviceRGB": "RGB", "/DeviceGray": "L", "/DeviceCMYK": "CMYK"}
_ICC_MODES = {1: "L", 3: "RGB", 4: "CMYK"}


def _resolve(obj):
    """Dereference an indirect object, tolerating None."""
    while obj is not None and hasattr(obj, "get_object"):
        resolved = obj.get_object()
        if resolved is obj:
            break
        obj = resolved
    return obj


def _filters(xobj) -> list[str]:
    raw = _resolve(xobj.get("/Filter"))
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(_resolve(f)) for f in raw]
    return [str(raw)]


def _color_mode(xobj) -> str:
    space = _resolve(xobj.get("/ColorSpace"))
    if isinstance(space, (list, tuple)) and space:
        family = str(_resolve(space[0]))
        if family == "/ICCBased" and len(space) > 1:
            stream = _resolve(space[1])
            return _ICC_MODES.get(int(stream.get("/N", 3)), "RGB")
        raise ValueError(f"Unsupported color space {family}")
    return _COLOR_MODES.get(str(space), "RGB")


def _to_data_uri(mime_type: str, raw: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(raw).decode('ascii')}"


def decode_image(xobj, page: int) -> Optional[ExtractedImage]:
    """Decode one image XObject, or return None if it should be skipped."""
    from PIL import Image

    width = int(_resolve(xobj.get("/Width", 0)))
    height = int(_resolve(xobj.get("/Height", 0)))
    if width < MIN_IMAGE_SIDE or height < MIN_IMAGE_SIDE:
        return None

    filters = _filters(xobj)
    data = xobj.get_data()

    if filters and filters[-1] == "/DCTDecode":
        return ExtractedImage(data=_to_data_uri("image/jpeg", data), page=page, width=width, height=height)

    if filters and filters[-1] == "/JPXDecode":
        img = Image.open(io.BytesIO(data))
    else:
        bits = int(_resolve(xobj.get("/BitsPerComponent", 8)))
        if bits != 8:
            raise ValueError(f"Unsupported bit depth {bits}")
        img = Image.frombytes(_color_mode(xobj), (width, height), data)

    if img.mode not in ("RGB", "L", "RGBA"):
        img = img.convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return ExtractedImage(data=_to_data_uri("image/png", buf.getvalue()), page=page, width=width, height=height)


def extract_images(pdf_bytes: bytes, max_images: int = MAX_IMAGES) -> list[ExtractedImage]:
    """Return embedded images in page order; empty when none can be read."""
    try:
        from pypdf import PdfReader

        reader = PdfReader(io.BytesIO(pdf_bytes))
        pages = list(reader.pages)
    except Exception as e:
        logger.warning(f"Image extraction unavailable: {e}")
        return []

    images: list[ExtractedImage] = []
    for page_number, page in enumerate(pages, start=1):
        try:
            resources = _resolve(page.get("/Resources"))
            xobjects = _resolve(resources.get("/XObject")) if resources else None
        except Exception as e:
            logger.debug(f"Page {page_number}: unreadable resources: {e}")
            continue
        if not xobjects:
            continue

        for name in list(xobjects.keys()):
            if len(images) >= max_images:
                logger.info(f"Image cap reached ({max_images})")
                return images
            try:
                xobj = _resolve(xobjects[name])
                if str(xobj.get("/Subtype")) != "/Image":
                    continue
                image = decode_image(xobj, page_number)
            except Exception as e:
                logger.warning(f"Page {page_number}: skipped image {name}: {e}")
                continue
            if image:
                images.append(image)

    logger.info(f"Extracted {len(images)} image(s) from {len(pages)} page(s)")
    return images


async def describe_images(
    images: list[ExtractedImage],
    describe: Callable[[str, str], Awaitable[str]],
    delay: Optional[float] = None,
) -> list[ExtractedImage]:
    """Attach a short vision description to each image, one call at a time."""
    delay = settings.vision_delay if delay is None else delay
    described = []
    for i, image in enumerate(images):
        try:
            description = (await describe(image.data, DESCRIBE_PROMPT)).strip()
        except Exception as e:
            logger.warning(f"Vision description failed for image {i} (page {image.page}): {e}")
            description = ""
        described.append(image.model_copy(update={"description": description}))
        if delay and i < len(images) - 1:
            await asyncio.sleep(delay)
    return described
