"""
Vision handler for turning user images into request attachments
"""
from io import BytesIO
from PIL import Image
from ultrachat.config import Config
from ultrachat.models.message import ImageAttachment
from ultrachat.utils.logger import get_logger

logger = get_logger("vision")


def encode_image(image, max_size=None, quality=None):
    """
    Encode PIL Image as a JPEG attachment

    Args:
        image: PIL Image object
        max_size: Maximum dimension size (defaults to vision.max_size)
        quality: JPEG quality 1-100 (defaults to vision.quality)

    Returns:
        ImageAttachment: JPEG bytes with MIME type image/jpeg
    """
    max_size = max_size or Config.get("vision", "max_size", default=2048)
    quality = quality or Config.get("vision", "quality", default=85)

    # Make a copy to avoid modifying original
    img = image.copy()

    if max(img.size) > max_size:
        img.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)
        logger.info(f"Resized image from {image.size} to {img.size}")

    # JPEG has no alpha channel: flatten onto white
    if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
        img = img.convert('RGBA')
        background = Image.new('RGB', img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[3])
        img = background
    elif img.mode != 'RGB':
        img = img.convert('RGB')

    buffered = BytesIO()
    img.save(buffered, format="JPEG", quality=quality)
    img_bytes = buffered.getvalue()

    logger.info(f"Encoded image: {img.size[0]}x{img.size[1]}, {len(img_bytes)} bytes")
    return ImageAttachment(data=img_bytes, mime_type="image/jpeg")


def encode_image_file(file_path, max_size=None, quality=None):
    """
    Encode image file as a JPEG attachment

    Args:
        file_path: Path to image file
        max_size: Maximum dimension size
        quality: JPEG quality

    Returns:
        ImageAttachment
    """
    try:
        with Image.open(file_path) as img:
            return encode_image(img, max_size, quality)
    except (OSError, Image.DecompressionBombError) as e:
        logger.error(f"Failed to encode image file {file_path}: {e}")
        raise


def decode_attachment(attachment: ImageAttachment):
    """
    Open an attachment as a PIL Image (used for previews)

    Returns:
        PIL.Image: Loaded image
    """
    img = Image.open(BytesIO(attachment.data))
    img.load()
    return img
