from app.models.evidence_file import EvidenceFile, EvidenceKind
from app.models.pdf_packet import PdfPacket
from app.models.dispute_explanation import DisputeExplanation

__all__ = [
    "EvidenceFile",
    "EvidenceKind",
    "PdfPacket",
    "DisputeExplanation",
]
