"""
Rendering of claim form records into editable PDF documents.

Rendering happens in two passes. ``plan_fields`` is a pure layout pass that
positions every text field (header block, then table rows with pagination).
``build_pdf`` draws the planned fields as AcroForm text widgets with
ReportLab, adds the embedded image on the last page and serializes the
document.

All coordinates are PDF points with the origin at the bottom-left corner.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
from typing import Dict, List, Optional, Tuple

from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .errors import ImageDecodeError, RenderError
from .models import FieldSpec, FormRecord, PaginationSpec, PdfLayout, RenderedField

logger = logging.getLogger(__name__)


def decode_data_url(value: str) -> Image.Image:
    """
    Decode a base64 image, with or without a ``data:image/...;base64,`` prefix.

    Raises:
        ImageDecodeError: If the payload is not base64 or not a readable image
    """
    payload = value.split(",", 1)[1] if "," in value else value
    payload = "".join(payload.split())
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"Invalid base64 image data: {exc}") from exc
    if not raw:
        raise ImageDecodeError("Invalid base64 image data: empty payload")

    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (OSError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"Unable to decode image: {exc}") from exc
    return image


def _header_value(record: FormRecord, spec: FieldSpec) -> str:
    parts = [record.scalar(source) for source in spec.sources]
    if not any(parts):
        return ""
    return spec.separator.join(parts)


def _advance(y: float, page: int, pagination: PaginationSpec) -> Tuple[float, int]:
    if pagination.enabled and y < pagination.low_water_mark:
        return pagination.top_of_page, page + 1
    return y, page


def plan_fields(record: FormRecord, layout: PdfLayout) -> Tuple[List[RenderedField], int]:
    """
    Position every form field of a record.

    Header fields always land on the first page. Table rows share one
    vertical cursor that each row moves down by the table's row height.
    A row that would start below the low-water mark is placed at the top of
    a newly appended page instead, so no page is left without rows.
    Consecutive non-empty tables are separated by ``table_gap``.

    Returns:
        The planned fields in drawing order and the number of pages

    Raises:
        RenderError: If two fields end up with the same name
    """
    fields: List[RenderedField] = [
        RenderedField(
            name=spec.name,
            page=0,
            x=spec.x,
            y=spec.y,
            width=spec.width,
            height=spec.height,
            value=_header_value(record, spec),
            font_size=layout.font_size,
        )
        for spec in layout.header
    ]

    y, page = layout.tables_start_y, 0
    rows_placed = 0
    for table in layout.tables:
        rows = record.rows(table.source)
        if rows and rows_placed and layout.table_gap:
            y -= layout.table_gap

        for index, row in enumerate(rows):
            y, page = _advance(y, page, layout.pagination)
            for column in table.columns:
                fields.append(
                    RenderedField(
                        name=f"{table.prefix}{column.key}_{index}",
                        page=page,
                        x=column.x,
                        y=y,
                        width=column.width,
                        height=table.field_height,
                        value=str(getattr(row, column.key, "") or ""),
                        font_size=layout.font_size,
                    )
                )
            y -= table.row_height
        rows_placed += len(rows)

    seen = set()
    for planned in fields:
        if planned.name in seen:
            raise RenderError(f"Duplicate form field name: {planned.name}")
        seen.add(planned.name)

    return fields, page + 1


def _render(
    fields: List[RenderedField],
    page_count: int,
    image: Optional[Image.Image],
    layout: PdfLayout,
) -> bytes:
    by_page: Dict[int, List[RenderedField]] = {}
    for planned in fields:
        by_page.setdefault(planned.page, []).append(planned)

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(layout.page_width, layout.page_height))
    for page in range(page_count):
        for planned in by_page.get(page, []):
            pdf.acroForm.textfield(
                name=planned.name,
                value=planned.value,
                x=planned.x,
                y=planned.y,
                width=planned.width,
                height=planned.height,
                fontName=layout.font_name,
                fontSize=planned.font_size,
                borderWidth=1,
                forceBorder=True,
                maxlen=layout.max_length,
            )
        if image is not None and layout.image is not None and page == page_count - 1:
            spec = layout.image
            pdf.drawImage(ImageReader(image), spec.x, spec.y, width=spec.width, height=spec.height, mask="auto")
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def build_pdf(record: FormRecord, layout: PdfLayout) -> bytes:
    """
    Render a record into an editable PDF document.

    The embedded image is decoded before anything is drawn, so a bad image
    aborts the request without producing a document.

    Raises:
        ImageDecodeError: If ``canvasImage`` cannot be decoded
        RenderError: If field names collide or ReportLab fails
    """
    image = None
    if record.canvasImage:
        if layout.image is None:
            logger.warning("Record carries an image but the layout has no image slot; ignoring it")
        else:
            image = decode_data_url(record.canvasImage)

    fields, page_count = plan_fields(record, layout)
    try:
        content = _render(fields, page_count, image, layout)
    except Exception as exc:  # ReportLab raises plain Exception subclasses of many kinds
        logger.exception("PDF rendering failed")
        raise RenderError(f"PDF rendering failed: {exc}") from exc

    logger.info(f"Rendered PDF with {len(fields)} fields on {page_count} page(s), {len(content)} bytes")
    return content
