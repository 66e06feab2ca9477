"""
A4 code sheets rendered with ReportLab.

Items are stacked top to bottom: name, optional description, the code image
and a separator. A new page starts when the next item would cross the
bottom margin.
"""
import io
import logging

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .label_generator import generate_code_image

logger = logging.getLogger(__name__)

MARGIN = 15 * mm
TOP = 20 * mm
ITEM_HEIGHT = {
    'qrcode': 80 * mm,
    'barcode': 50 * mm,
}
QR_SIZE = 50 * mm
BARCODE_WIDTH = 80 * mm
BARCODE_HEIGHT = 25 * mm


def build_barcode_pdf(items, code_type='barcode', title=None):
    """
    Render ``items`` (dicts with code, name and optional description) into
    a PDF and return its bytes.
    """
    if code_type not in ITEM_HEIGHT:
        raise ValueError(f"Unknown code type '{code_type}'")

    page_width, page_height = A4
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    if title:
        pdf.setTitle(title)

    # y counts down from the top edge, ReportLab draws from the bottom edge
    y = TOP
    item_height = ITEM_HEIGHT[code_type]

    for index, item in enumerate(items):
        if y + item_height > page_height - MARGIN:
            pdf.showPage()
            y = TOP

        pdf.setFont('Helvetica-Bold', 12)
        pdf.drawString(MARGIN, page_height - y, str(item.get('name', '')))
        y += 6 * mm

        if item.get('description'):
            pdf.setFont('Helvetica', 9)
            pdf.drawString(MARGIN, page_height - y, str(item['description']))
            y += 5 * mm

        code = str(item.get('code') or '')
        try:
            image = ImageReader(io.BytesIO(generate_code_image(code, code_type)))
            if code_type == 'qrcode':
                pdf.drawImage(image, MARGIN, page_height - y - QR_SIZE, width=QR_SIZE, height=QR_SIZE)
                pdf.setFont('Helvetica', 10)
                pdf.drawCentredString(MARGIN + QR_SIZE / 2, page_height - y - QR_SIZE - 6 * mm, code)
                y += QR_SIZE + 15 * mm
            else:
                pdf.drawImage(image, MARGIN, page_height - y - BARCODE_HEIGHT, width=BARCODE_WIDTH, height=BARCODE_HEIGHT)
                pdf.setFont('Helvetica', 10)
                pdf.drawCentredString(MARGIN + BARCODE_WIDTH / 2, page_height - y - BARCODE_HEIGHT - 5 * mm, code)
                y += BARCODE_HEIGHT + 10 * mm
        except Exception as e:
            logger.error(f"Failed to render code '{code}' for PDF sheet: {str(e)}")
            pdf.setFont('Helvetica', 9)
            pdf.setFillColorRGB(1, 0, 0)
            pdf.drawString(MARGIN, page_height - y, 'Erro ao gerar código')
            pdf.setFillColorRGB(0, 0, 0)
            y += 10 * mm

        if index < len(items) - 1:
            pdf.setStrokeColorRGB(0.78, 0.78, 0.78)
            pdf.line(MARGIN, page_height - y, page_width - MARGIN, page_height - y)
            pdf.setStrokeColorRGB(0, 0, 0)
            y += 10 * mm

    pdf.save()
    return buffer.getvalue()
