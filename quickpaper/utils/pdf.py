import io
import logging
from dataclasses import dataclass, field
from typing import Optional

import pymupdf
from PIL import Image

from . import data_uri_to_bytes, format_money, format_rate
from .exceptions import ImageDecodeError, RenderError
from .models import ReceiptModel, RenderedDocument

logger = logging.getLogger(__name__)

# layout units are millimetres on an A4 page
PAGE_WIDTH = 210
PAGE_HEIGHT = 297
MARGIN = 20
BOTTOM = PAGE_HEIGHT - MARGIN
LINE = 7
TOP = 20
IMAGE_BOX = (40, 20)
LOGO_TEXT_OFFSET = 45

FONT = 'helv'
FONT_BOLD = 'hebo'
HEADER_FONTSIZE = 16
FONTSIZE = 12
TABLE_FONTSIZE = 10
TABLE_LINE = 5
CELL_PADDING = 2
TABLE_HEAD = ('Description', 'Quantity', 'Unit Price', 'Total')
# relative column widths, summing to 1
TABLE_COLUMNS = (0.42, 0.14, 0.22, 0.22)
HEAD_FILL = (41 / 255, 128 / 255, 185 / 255)
STRIPE_FILL = (245 / 255, 245 / 255, 245 / 255)
GRID_COLOR = (0.8, 0.8, 0.8)


def mm(value: float) -> float:
    return value * 72 / 25.4


@dataclass
class DecodedImage:
    """PNG-normalised raster plus its pixel dimensions"""

    data: bytes
    width: int
    height: int


def load_image(source: str) -> DecodedImage:
    """Decode a data URI / base64 image into a DecodedImage.

    Raises:
        ImageDecodeError: payload is not base64 or not an image Pillow can read
    """
    try:
        raw = data_uri_to_bytes(source)
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            if img.mode not in ('RGB', 'RGBA', 'L', 'LA'):
                img = img.convert('RGBA')
            buf = io.BytesIO()
            img.save(buf, format='png')
            return DecodedImage(buf.getvalue(), img.width, img.height)
    except (ValueError, OSError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(str(e)) from e


def fit_within(width: float, height: float, max_width: float, max_height: float) -> tuple[float, float]:
    """Shrink (never enlarge) width x height to fit the box, keeping the aspect ratio"""
    if width > max_width:
        height = height * max_width / width
        width = max_width
    if height > max_height:
        width = width * max_height / height
        height = max_height
    return width, height


def split_text_to_size(text: str, max_width: float, fontsize: float = FONTSIZE, fontname: str = FONT) -> list[str]:
    """Greedy word wrap of text so each line fits max_width (mm)"""
    limit = mm(max_width)
    lines = []
    for paragraph in text.splitlines() or ['']:
        current = ''
        for word in paragraph.split():
            candidate = f'{current} {word}' if current else word
            if current and pymupdf.get_text_length(candidate, fontname=fontname, fontsize=fontsize) > limit:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


@dataclass
class LayoutCursor:
    """Vertical position (mm) of the next baseline"""

    y: float = TOP

    def advance(self, dy: float) -> float:
        self.y += dy
        return self.y


@dataclass
class ReceiptLayout:
    """Draws one receipt on one page, top to bottom"""

    page: pymupdf.Page
    model: ReceiptModel
    cursor: LayoutCursor = field(default_factory=LayoutCursor)

    @property
    def printable_width(self) -> float:
        return PAGE_WIDTH - 2 * MARGIN

    def fits(self, y: float):
        if y > BOTTOM:
            raise RenderError('receipt does not fit on one page')

    def text(self, x, y, value, fontsize=FONTSIZE, bold=False, color=(0, 0, 0)):
        self.page.insert_text(
            (mm(x), mm(y)),
            value,
            fontsize=fontsize,
            fontname=FONT_BOLD if bold else FONT,
            color=color,
        )

    def text_right(self, right, y, value, fontsize=FONTSIZE, bold=False):
        width = pymupdf.get_text_length(value, fontname=FONT_BOLD if bold else FONT, fontsize=fontsize)
        self.page.insert_text(
            (mm(right) - width, mm(y)),
            value,
            fontsize=fontsize,
            fontname=FONT_BOLD if bold else FONT,
        )

    def image(self, img: DecodedImage, x, y) -> float:
        width, height = fit_within(img.width, img.height, *IMAGE_BOX)
        self.page.insert_image(pymupdf.Rect(mm(x), mm(y), mm(x + width), mm(y + height)), stream=img.data)
        return height

    def header(self, logo: Optional[DecodedImage]):
        y = self.cursor.y
        if logo is not None:
            logo_height = self.image(logo, MARGIN, y)
            self.text(MARGIN + LOGO_TEXT_OFFSET, y + 10, self.model.company_name, fontsize=HEADER_FONTSIZE)
            self.cursor.advance(max(logo_height, IMAGE_BOX[1]) + 10)
        else:
            self.text(MARGIN, y, self.model.company_name, fontsize=HEADER_FONTSIZE)
            self.cursor.advance(10)

    def details(self):
        self.text(MARGIN, self.cursor.advance(15), f'Receipt #: {self.model.receipt_number}')
        self.text(MARGIN, self.cursor.advance(LINE), f'Date: {self.model.date}')

    def bill_to(self):
        m = self.model
        self.text(MARGIN, self.cursor.advance(13), 'Bill To:')
        self.text(MARGIN, self.cursor.advance(LINE), m.customer_name)
        if m.customer_number:
            self.text(MARGIN, self.cursor.advance(LINE), f'Contact Number: {m.customer_number}')
        if m.customer_address:
            lines = split_text_to_size(m.customer_address, self.printable_width)
            y = self.cursor.advance(LINE)
            for i, line in enumerate(lines):
                self.text(MARGIN, y + i * LINE, line)
            self.cursor.advance((len(lines) - 1) * LINE)

    def items_table(self):
        m = self.model
        widths = [self.printable_width * share for share in TABLE_COLUMNS]
        rows = [
            (
                item.name,
                str(item.quantity),
                format_money(m.currency, item.price),
                format_money(m.currency, item.line_total),
            )
            for item in m.items
        ]
        top = self.cursor.advance(10)
        top = self._table_row(top, TABLE_HEAD, widths, fill=HEAD_FILL, head=True)
        for i, row in enumerate(rows):
            top = self._table_row(top, row, widths, fill=STRIPE_FILL if i % 2 else None)
        self.cursor.y = top

    def _table_row(self, top, cells, widths, fill=None, head=False) -> float:
        description = split_text_to_size(cells[0], widths[0] - 2 * CELL_PADDING, fontsize=TABLE_FONTSIZE)
        height = len(description) * TABLE_LINE + 2 * CELL_PADDING - 1
        self.fits(top + height)
        rect = pymupdf.Rect(mm(MARGIN), mm(top), mm(MARGIN + self.printable_width), mm(top + height))
        self.page.draw_rect(rect, color=None if head else GRID_COLOR, fill=fill, width=0.5)

        baseline = top + CELL_PADDING + TABLE_LINE - 1.5
        color = (1, 1, 1) if head else (0, 0, 0)
        for i, line in enumerate(description):
            self.text(
                MARGIN + CELL_PADDING, baseline + i * TABLE_LINE, line, TABLE_FONTSIZE, bold=head, color=color
            )
        x = MARGIN + widths[0]
        for value, width in zip(cells[1:], widths[1:]):
            self.text(x + CELL_PADDING, baseline, value, TABLE_FONTSIZE, bold=head, color=color)
            x += width
        return top + height

    def totals(self, signature: Optional[DecodedImage]):
        m = self.model
        anchor = self.cursor.advance(10)
        right = PAGE_WIDTH - MARGIN
        # lowest element anchored to the totals block
        if m.title:
            self.fits(anchor + 65)
        elif signature is not None:
            self.fits(anchor + 35 + fit_within(signature.width, signature.height, *IMAGE_BOX)[1])
        else:
            self.fits(anchor + 25)
        self.text_right(right, anchor, f'Subtotal: {format_money(m.currency, m.subtotal)}')
        self.text_right(right, anchor + LINE, f'Tax ({format_rate(m.tax_rate)}%): {format_money(m.currency, m.tax)}')
        self.text_right(right, anchor + 2 * LINE, f'Total: {format_money(m.currency, m.total)}', bold=True)

        self.text(MARGIN, anchor + 25, f'Payment Method: {m.payment_method}')
        if signature is not None:
            self.image(signature, MARGIN, anchor + 35)
        if m.title:
            self.text(MARGIN, anchor + 65, m.title)


def _optional_image(source: Optional[str], label: str, warnings: list[str]) -> Optional[DecodedImage]:
    if not source:
        return None
    try:
        return load_image(source)
    except ImageDecodeError as e:
        logger.warning('Skipping %s, could not decode image: %s', label, e)
        warnings.append(f'{label}: {e}')
        return None


def render(model: ReceiptModel) -> RenderedDocument:
    """Render the receipt as a single-page PDF.

    Images are decoded before any drawing; an image that fails to decode is
    skipped and reported in RenderedDocument.warnings.

    Raises:
        RenderError: the page or the items table could not be produced, or the
            receipt does not fit on one page
    """
    warnings: list[str] = []
    logo = _optional_image(model.company_logo, 'logo', warnings)
    signature = _optional_image(model.signature, 'signature', warnings)

    try:
        with pymupdf.open() as doc:
            page = doc.new_page(width=mm(PAGE_WIDTH), height=mm(PAGE_HEIGHT))
            layout = ReceiptLayout(page, model)
            layout.header(logo)
            layout.details()
            layout.bill_to()
            layout.items_table()
            layout.totals(signature)
            doc.set_metadata(
                {
                    'title': f'Receipt {model.receipt_number}',
                    'creator': 'quickpaper',
                    'producer': 'quickpaper',
                }
            )
            content = doc.tobytes(garbage=3, deflate=True, no_new_id=True)
    except Exception as e:
        raise RenderError(f'Could not generate receipt {model.receipt_number}: {e}') from e

    logger.debug('Rendered receipt %s (%d bytes)', model.receipt_number, len(content))
    return RenderedDocument(content, warnings=tuple(warnings))
