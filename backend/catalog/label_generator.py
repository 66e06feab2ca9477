"""
Local label rendering with Pillow, python-barcode and qrcode.

Two code symbologies are supported: CODE128 for product/order/material
codes and QR for codes that carry longer payloads.
"""
import io
import base64
import logging
from typing import Optional

from PIL import Image, ImageDraw, ImageFont
import barcode
from barcode.writer import ImageWriter
import qrcode

logger = logging.getLogger(__name__)

CODE_TYPES = ('barcode', 'qrcode')


def _load_fonts():
    try:
        return (
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf', 18),
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', 14),
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', 12),
        )
    except (OSError, IOError):
        try:
            return (
                ImageFont.truetype('arial.ttf', 18),
                ImageFont.truetype('arial.ttf', 14),
                ImageFont.truetype('arial.ttf', 12),
            )
        except (OSError, IOError):
            default = ImageFont.load_default()
            return default, default, default


def render_code(value: str, code_type: str = 'barcode') -> Image.Image:
    """Render a CODE128 barcode or a QR code as a PIL image"""
    if not value:
        raise ValueError('Code value is required')
    if code_type not in CODE_TYPES:
        raise ValueError(f"Unknown code type '{code_type}'")

    if code_type == 'qrcode':
        qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, box_size=8, border=2)
        qr.add_data(value)
        qr.make(fit=True)
        buffer = io.BytesIO()
        qr.make_image(fill_color='black', back_color='white').save(buffer, format='PNG')
        buffer.seek(0)
        return Image.open(buffer).convert('RGB')

    code128 = barcode.get_barcode_class('code128')
    instance = code128(value, writer=ImageWriter())
    return instance.render({
        'write_text': False,
        'module_width': 0.3,
        'module_height': 15.0,
        'quiet_zone': 2.0,
        'font_size': 0,
        'text_distance': 0,
        'background': 'white',
        'foreground': 'black',
    }).convert('RGB')


def image_to_png_bytes(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format='PNG', optimize=False, compress_level=1)
    return buffer.getvalue()


def generate_code_image(value: str, code_type: str = 'barcode') -> bytes:
    """PNG bytes of a single barcode or QR code"""
    img = render_code(value, code_type)
    try:
        return image_to_png_bytes(img)
    finally:
        img.close()


def _draw_centered(draw, text, y, width, font):
    bbox = draw.textbbox((0, 0), text, font=font)
    text_width = bbox[2] - bbox[0]
    draw.text(((width - text_width) // 2, y), text, fill='black', font=font)
    return bbox[3] - bbox[1]


def generate_label_image(
    title: str,
    code_value: str,
    subtitle: Optional[str] = None,
    code_type: str = 'barcode',
    width: int = 400,  # 4 inches at 100 DPI
    height: int = 200,  # 2 inches at 100 DPI
) -> str:
    """
    Generate a printable label: title on top, code in the middle and the
    human-readable code plus subtitle below.

    Returns:
        Base64-encoded PNG image as data URL string
    """
    max_title_length = 32
    if len(title) > max_title_length:
        title = title[:max_title_length] + '...'

    if code_type == 'qrcode':
        height = max(height, 260)

    img = Image.new('RGB', (width, height), color='white')
    draw = ImageDraw.Draw(img)
    font_large, font_medium, font_small = _load_fonts()

    margin = 10
    title_y = 8
    code_y = title_y + 24
    bottom_reserved = 40 if subtitle else 22
    available_height = height - code_y - bottom_reserved

    _draw_centered(draw, title, title_y, width, font_large)

    try:
        code_img = render_code(code_value, code_type)
        code_width, code_height = code_img.size
        if code_type == 'qrcode':
            side = min(available_height, width - 2 * margin)
            target = (side, side)
        else:
            target_width = width - 2 * margin
            scale = target_width / code_width
            target_height = min(int(code_height * scale), available_height)
            target = (target_width, target_height)
        code_img = code_img.resize(target, Image.Resampling.BILINEAR)
        img.paste(code_img, ((width - target[0]) // 2, code_y))
        text_y = code_y + target[1] + 4
        code_img.close()
    except Exception as e:
        # A broken code value must not prevent the rest of the label
        logger.error(f"Code generation failed for '{code_value}': {str(e)}")
        text_y = code_y

    _draw_centered(draw, code_value, text_y, width, font_small)
    if subtitle:
        _draw_centered(draw, subtitle[:48], text_y + 16, width, font_medium)

    png_bytes = image_to_png_bytes(img)
    img.close()
    return f'data:image/png;base64,{base64.b64encode(png_bytes).decode("utf-8")}'
