"""
Document Renderer

Draws normalized transaction values onto the blank form. Text goes on a
reportlab overlay, one overlay page per template page, which is then
merged onto the template with pypdf.
"""

import io
import logging
from datetime import date
from typing import Any, Dict

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from reportlab.pdfgen import canvas as rl_canvas

from .exceptions import TemplateUnavailable
from .normalizer import build_filename, normalize_record
from .sanitizer import ensure_encodable, sanitize_text
from .template_source import TemplateLoader
from .types import FieldMapDefinition, FieldPlacement, FontWeight, LETTER_SIZE, NormalizedRecord, RenderedDocument

logger = logging.getLogger(__name__)


class DocumentRenderer:
    """
    Renders a NormalizedRecord onto a template using a field map.

    Usage:
        renderer = DocumentRenderer(FieldMapLoader.get_or_raise())
        document = renderer.render(record, template_bytes)
    """

    def __init__(self, field_map: FieldMapDefinition):
        self.field_map = field_map

    def render(self, record: NormalizedRecord, template_bytes: bytes, today: date = None) -> RenderedDocument:
        """
        Produce the filled PDF.

        Raises:
            TemplateUnavailable: if the template bytes are not a readable PDF
            TextEncodingError: if a value cannot be drawn with the PDF fonts
        """
        writer = self._load_template(template_bytes)
        page_count = len(writer.pages)

        skipped = [f.field_key for f in self.field_map.fields if f.page > page_count]
        if skipped:
            logger.info(f"Template has {page_count} page(s); skipping {', '.join(skipped)}")

        overlay_buffer = io.BytesIO()
        overlay = rl_canvas.Canvas(overlay_buffer, pagesize=LETTER_SIZE, invariant=1)

        # Resolved once for every draw
        fonts = {weight: self.field_map.font_name(weight) for weight in FontWeight}

        drawn = 0
        for index, page in enumerate(writer.pages):
            overlay.setPageSize((float(page.mediabox.width), float(page.mediabox.height)))
            for placement in self.field_map.get_fields_for_page(index + 1):
                if self._draw(overlay, fonts, placement, record):
                    drawn += 1
            overlay.showPage()
        overlay.save()

        overlay_reader = PdfReader(io.BytesIO(overlay_buffer.getvalue()))
        for index, page in enumerate(writer.pages):
            page.merge_page(overlay_reader.pages[index])

        output = io.BytesIO()
        writer.write(output)

        filename = build_filename(record, today=today)
        logger.info(f"Rendered {filename}: {drawn} field(s) on {page_count} page(s)")
        return RenderedDocument(content=output.getvalue(), filename=filename)

    def _load_template(self, template_bytes: bytes) -> PdfWriter:
        try:
            reader = PdfReader(io.BytesIO(template_bytes))
            writer = PdfWriter()
            writer.append(reader)
        except (PdfReadError, ValueError) as e:
            raise TemplateUnavailable(f"Template is not a readable PDF: {e}") from e

        if len(writer.pages) == 0:
            width, height = self.field_map.page_size
            writer.add_blank_page(width=width, height=height)
        return writer

    @staticmethod
    def _draw(overlay, fonts: Dict[FontWeight, str], placement: FieldPlacement, record: NormalizedRecord) -> bool:
        """Draw one value; returns False when the value is absent."""
        value = sanitize_text(record.get(placement.source))
        if not value:
            return False

        text = ensure_encodable(sanitize_text(placement.prefix + value), placement.field_key)
        overlay.setFont(fonts[placement.weight], placement.size)
        overlay.drawString(placement.x, placement.y, text)
        return True


def render_transaction_pdf(
    raw: Dict[str, Any],
    loader: TemplateLoader,
    renderer: DocumentRenderer,
    today: date = None
) -> RenderedDocument:
    """Normalize a submission, fetch the template and render it."""
    record = normalize_record(raw)
    template_bytes = loader.load()
    return renderer.render(record, template_bytes, today=today)
