"""Stripe dispute evidence packet rendering.

A packet is a single PDF with a fixed section order: dispute summary, merchant
explanation, transaction/customer details, an evidence index table and one page
per image exhibit. Exhibits are labelled in upload order (A..Z, then 27, 28, ...).
Image failures never abort a packet; they are rendered as inline warnings.
"""

import io
import logging
import os
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.utils import ImageReader
from reportlab.platypus import Image, PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import InternalError
from app.models import EvidenceFile, PdfPacket
from app.services import file_storage
from app.services.evidence import list_evidence_files
from app.services.explanations import get_explanation
from app.services.packets import create_packet
from app.services.stripe_gateway import Dispute, DisputeGateway

logger = logging.getLogger(__name__)

PAGE_SIZE = letter
MARGIN = 50
# SimpleDocTemplate frames pad each side by 6pt.
FRAME_PADDING = 6
# Headroom below an exhibit image for float rounding in frame layout.
IMAGE_SLACK = 4
MIN_IMAGE_HEIGHT = 72

DEFAULT_EXPLANATION = (
    "The merchant asserts that this payment was valid and fulfilled as agreed. "
    "The following exhibits provide supporting documentation."
)

EVIDENCE_DESCRIPTIONS = {
    "invoice": "Invoice/receipt showing date, amount, and purchased items.",
    "tracking": "Shipping/tracking proof showing delivery to cardholder's address.",
    "chat": "Customer communication relevant to this dispute.",
    "tos": "Terms/refund policy as presented to the customer.",
    "screenshot": "Screenshot supporting the merchant's position for this dispute.",
}
GENERIC_DESCRIPTION = "Supporting documentation for this dispute."

CUSTOMER_FIELDS = (
    ("customer_name", "Customer Name"),
    ("customer_email_address", "Customer Email"),
    ("customer_billing_address", "Billing Address"),
    ("customer_shipping_address", "Shipping Address"),
    ("product_description", "Product / Service"),
    ("customer_purchase_ip", "Customer IP"),
)

MISSING_IMAGE_WARNING = "Unable to embed exhibit image: file not found on server."
BROKEN_IMAGE_WARNING = (
    "An error occurred while embedding this exhibit image. The evidence is still listed in the index above."
)


@dataclass
class Exhibit:
    label: str
    file: EvidenceFile

    @property
    def kind(self) -> str:
        return _kind_value(self.file.kind)


@dataclass
class IndexRow:
    label: str
    kind: str
    filename: str
    description: str


@dataclass
class ExhibitPage:
    label: str
    filename: str
    status: str  # embedded | missing | error


@dataclass
class PacketOutline:
    dispute_id: str
    sections: list[str] = field(default_factory=list)
    index_rows: list[IndexRow] = field(default_factory=list)
    exhibit_pages: list[ExhibitPage] = field(default_factory=list)
    used_default_explanation: bool = False


@dataclass
class GeneratedPacket:
    packet: PdfPacket
    outline: PacketOutline


def _kind_value(kind) -> str:
    return str(getattr(kind, "value", kind) or "")


def exhibit_label(index: int) -> str:
    if 0 <= index < len(string.ascii_uppercase):
        return string.ascii_uppercase[index]
    return str(index + 1)


def assign_exhibits(files: list[EvidenceFile]) -> list[Exhibit]:
    return [Exhibit(label=exhibit_label(idx), file=item) for idx, item in enumerate(files)]


def describe_evidence(kind) -> str:
    return EVIDENCE_DESCRIPTIONS.get(_kind_value(kind), GENERIC_DESCRIPTION)


def format_amount(amount_minor: int, currency: str) -> str:
    return f"{int(amount_minor or 0) / 100:.2f} {str(currency or '').upper()}"


def format_datetime(value) -> str:
    if not value:
        return "N/A"
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    else:
        moment = datetime.fromtimestamp(int(value), tz=timezone.utc)
    return moment.astimezone().strftime("%c")


def format_bytes(size) -> str:
    if not size or size <= 0:
        return "N/A"
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / 1024 / 1024:.1f} MB"


def humanize(value) -> str:
    text = str(value or "").replace("_", " ").strip()
    return text or "N/A"


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    body = ParagraphStyle("PacketBody", parent=base["Normal"], fontName="Helvetica", fontSize=11, leading=14)
    return {
        "title": ParagraphStyle(
            "PacketTitle", parent=base["Title"], fontName="Helvetica-Bold", fontSize=20, alignment=TA_CENTER
        ),
        "subtitle": ParagraphStyle("PacketSubtitle", parent=body, fontSize=12, alignment=TA_CENTER),
        "section": ParagraphStyle(
            "PacketSection", parent=base["Heading2"], fontName="Helvetica-Bold", fontSize=16, spaceAfter=6
        ),
        "exhibit": ParagraphStyle("PacketExhibit", parent=body, fontName="Helvetica-Bold", fontSize=12),
        "body": body,
        "small": ParagraphStyle("PacketSmall", parent=body, fontSize=10, leading=12),
        "cell": ParagraphStyle("PacketCell", parent=body, fontSize=10, leading=12),
        "cell_bold": ParagraphStyle("PacketCellBold", parent=body, fontName="Helvetica-Bold", fontSize=10),
        "warning": ParagraphStyle("PacketWarning", parent=body, fontSize=10, textColor=colors.red),
    }


def _para(text: str, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(str(text)).replace("\n", "<br/>"), style)


def _load_image(path: str, max_width: float, max_height: float) -> Image:
    with open(path, "rb") as fh:
        data = fh.read()
    reader = ImageReader(io.BytesIO(data))
    width, height = reader.getSize()
    # Decode now so a corrupt file fails here instead of during doc.build().
    reader.getRGBData()
    if not width or not height:
        raise ValueError(f"image has no dimensions: {path}")
    scale = min(max_width / width, max_height / height, 1)
    return Image(io.BytesIO(data), width=width * scale, height=height * scale, hAlign="LEFT")


class PacketRenderer:
    def __init__(self, dispute: Dispute, exhibits: list[Exhibit], explanation: str | None):
        self.dispute = dispute
        self.exhibits = exhibits
        self.explanation = (explanation or "").strip()
        self.styles = _styles()
        page_width, page_height = PAGE_SIZE
        self.usable_width = page_width - MARGIN * 2 - FRAME_PADDING * 2
        self.frame_height = page_height - MARGIN * 2 - FRAME_PADDING * 2
        self.outline = PacketOutline(dispute_id=dispute.id)

    def _section(self, story: list, title: str) -> Paragraph:
        self.outline.sections.append(title)
        heading = Paragraph(escape(title), self.styles["section"])
        story.append(heading)
        return heading

    def _stack_height(self, flowables: list) -> float:
        total = 0.0
        for item in flowables:
            _, height = item.wrap(self.usable_width, self.frame_height)
            total += height + item.getSpaceBefore() + item.getSpaceAfter()
        return total

    def _header(self, story: list) -> None:
        story.append(Paragraph("Stripe Dispute Evidence Packet", self.styles["title"]))
        story.append(_para(f"Dispute ID: {self.dispute.id}", self.styles["subtitle"]))
        story.append(Spacer(1, 28))

    def _summary(self, story: list) -> None:
        d = self.dispute
        body = self.styles["body"]
        self._section(story, "1. Dispute Summary")
        story.append(_para(f"Charge ID: {d.charge or 'N/A'}", body))
        if d.payment_intent:
            story.append(_para(f"Payment Intent: {d.payment_intent}", body))
        story.append(_para(f"Amount: {format_amount(d.amount, d.currency)}", body))
        story.append(_para(f"Reason: {humanize(d.reason)}", body))
        story.append(_para(f"Status: {humanize(d.status)}", body))
        story.append(_para(f"Created: {format_datetime(d.created)}", body))
        if d.due_by:
            story.append(_para(f"Evidence Due By: {format_datetime(d.due_by)}", body))
        story.append(Spacer(1, 18))

    def _explanation(self, story: list) -> None:
        self._section(story, "2. Dispute Explanation")
        text = self.explanation
        if not text:
            self.outline.used_default_explanation = True
            text = DEFAULT_EXPLANATION
        story.append(_para(text, self.styles["body"]))
        story.append(Spacer(1, 18))

    def _customer_details(self, story: list) -> None:
        self._section(story, "3. Transaction & Customer Details")
        evidence = self.dispute.evidence or {}
        for key, label in CUSTOMER_FIELDS:
            value = evidence.get(key)
            if isinstance(value, str):
                value = value.strip()
            if value:
                story.append(_para(f"{label}: {value}", self.styles["body"]))
        story.append(Spacer(1, 18))

    def _evidence_index(self, story: list) -> None:
        self._section(story, "4. Evidence Index")
        if not self.exhibits:
            story.append(_para("No evidence has been uploaded for this dispute.", self.styles["body"]))
            return

        cell = self.styles["cell"]
        head = self.styles["cell_bold"]
        rows = [[Paragraph(h, head) for h in ("Exhibit", "Type", "Filename", "Description")]]
        for exhibit in self.exhibits:
            row = IndexRow(
                label=exhibit.label,
                kind=exhibit.kind.upper(),
                filename=exhibit.file.filename or "N/A",
                description=describe_evidence(exhibit.kind),
            )
            self.outline.index_rows.append(row)
            rows.append([_para(row.label, cell), _para(row.kind, cell), _para(row.filename, cell), _para(row.description, cell)])

        widths = [self.usable_width * share for share in (0.10, 0.18, 0.27, 0.45)]
        table = Table(rows, colWidths=widths, repeatRows=1, hAlign="LEFT")
        table.setStyle(
            TableStyle(
                [
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("LINEBELOW", (0, 0), (-1, 0), 1, colors.black),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                    ("TOPPADDING", (0, 0), (-1, -1), 4),
                    ("LEFTPADDING", (0, 0), (-1, -1), 2),
                ]
            )
        )
        story.append(table)

    def _exhibit_page(self, story: list, exhibit: Exhibit, lead_height: float = 0.0) -> None:
        """Append one exhibit; ``lead_height`` is what already sits above it on the page."""
        item = exhibit.file
        header = [
            _para(f"Exhibit {exhibit.label} – {exhibit.kind.upper()} ({item.filename})", self.styles["exhibit"]),
            Spacer(1, 6),
            _para(
                f"Uploaded: {format_datetime(item.created_at)} • Size: {format_bytes(item.size_bytes)}",
                self.styles["small"],
            ),
            Spacer(1, 10),
        ]
        story.extend(header)
        available = self.frame_height - lead_height - self._stack_height(header) - IMAGE_SLACK
        max_height = max(available, MIN_IMAGE_HEIGHT)

        path = file_storage.resolve_path(item.stored_path)
        if not path.is_file():
            logger.warning("Exhibit %s file missing at %s", exhibit.label, path)
            self.outline.exhibit_pages.append(ExhibitPage(exhibit.label, item.filename, "missing"))
            story.append(_para(f"Warning: {MISSING_IMAGE_WARNING}", self.styles["warning"]))
            return
        try:
            story.append(_load_image(str(path), self.usable_width, max_height))
        except Exception as exc:
            logger.error("Error embedding exhibit %s (%s) into packet: %s", exhibit.label, path, exc)
            self.outline.exhibit_pages.append(ExhibitPage(exhibit.label, item.filename, "error"))
            story.append(_para(f"Warning: {BROKEN_IMAGE_WARNING}", self.styles["warning"]))
            return
        self.outline.exhibit_pages.append(ExhibitPage(exhibit.label, item.filename, "embedded"))

    def _exhibits(self, story: list) -> None:
        story.append(PageBreak())
        heading = self._section(story, "5. Exhibits")
        gap = Spacer(1, 8)
        story.append(gap)
        # The first exhibit shares its page with the section heading.
        lead_height = self._stack_height([heading, gap])

        images = [e for e in self.exhibits if file_storage.is_image_filename(e.file.filename)]
        if not images:
            story.append(
                _para(
                    "No image-based exhibits were uploaded. See the Evidence Index for details of any attached documentation.",
                    self.styles["body"],
                )
            )
            return
        for idx, exhibit in enumerate(images):
            if idx:
                story.append(PageBreak())
            self._exhibit_page(story, exhibit, lead_height=0.0 if idx else lead_height)

    def build_story(self) -> list:
        story: list = []
        self._header(story)
        self._summary(story)
        self._explanation(story)
        self._customer_details(story)
        self._evidence_index(story)
        self._exhibits(story)
        return story

    def render(self) -> bytes:
        buf = io.BytesIO()
        doc = SimpleDocTemplate(
            buf,
            pagesize=PAGE_SIZE,
            leftMargin=MARGIN,
            rightMargin=MARGIN,
            topMargin=MARGIN,
            bottomMargin=MARGIN,
            title=f"Dispute Evidence Packet {self.dispute.id}",
        )
        doc.build(self.build_story())
        return buf.getvalue()


def _write_atomic(target, data: bytes) -> None:
    tmp = f"{target}.part"
    try:
        with open(tmp, "wb") as fh:
            fh.write(data)
        os.replace(tmp, target)
    except OSError:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def generate_packet(db: Session, gateway: DisputeGateway, *, user_id: str, dispute_id: str) -> GeneratedPacket:
    dispute = gateway.retrieve_dispute(dispute_id)

    exhibits = assign_exhibits(list_evidence_files(db, user_id=user_id, dispute_id=dispute_id))
    record = get_explanation(db, user_id=user_id, dispute_id=dispute_id)

    renderer = PacketRenderer(dispute, exhibits, record.explanation if record else None)
    pdf_bytes = renderer.render()

    try:
        relative_path, target = file_storage.new_packet_path(dispute_id)
        _write_atomic(target, pdf_bytes)
    except OSError as exc:
        logger.error("Failed to write packet for dispute=%s: %s", dispute_id, exc)
        raise InternalError("Failed to write packet file") from exc

    try:
        packet = create_packet(db, user_id=user_id, dispute_id=dispute_id, filename=relative_path)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to record packet for dispute=%s: %s", dispute_id, exc)
        file_storage.remove_file(relative_path)
        raise InternalError("Failed to record packet") from exc

    logger.info(
        "Generated packet id=%s dispute=%s exhibits=%s path=%s",
        packet.id,
        dispute_id,
        len(exhibits),
        relative_path,
    )
    return GeneratedPacket(packet=packet, outline=renderer.outline)
