"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "evidence_files",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("dispute_id", sa.String(64), nullable=False),
        sa.Column(
            "kind",
            sa.Enum("invoice", "tracking", "chat", "tos", "screenshot", "other", name="evidencekind"),
            nullable=False,
        ),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("stored_path", sa.String(512), nullable=False),
        sa.Column("size_bytes", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_evidence_files_id", "evidence_files", ["id"], unique=False)
    op.create_index("ix_evidence_files_user_id", "evidence_files", ["user_id"], unique=False)
    op.create_index("ix_evidence_files_user_dispute", "evidence_files", ["user_id", "dispute_id"], unique=False)

    op.create_table(
        "pdf_packets",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("dispute_id", sa.String(64), nullable=False),
        sa.Column("filename", sa.String(512), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_pdf_packets_id", "pdf_packets", ["id"], unique=False)
    op.create_index("ix_pdf_packets_user_id", "pdf_packets", ["user_id"], unique=False)
    op.create_index(
        "ix_pdf_packets_user_dispute_created",
        "pdf_packets",
        ["user_id", "dispute_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "dispute_explanations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("dispute_id", sa.String(64), nullable=False),
        sa.Column("explanation", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_id", "dispute_id", name="uq_dispute_explanations_user_dispute"),
    )
    op.create_index("ix_dispute_explanations_id", "dispute_explanations", ["id"], unique=False)
    op.create_index("ix_dispute_explanations_user_id", "dispute_explanations", ["user_id"], unique=False)


def downgrade():
    op.drop_index("ix_dispute_explanations_user_id", table_name="dispute_explanations")
    op.drop_index("ix_dispute_explanations_id", table_name="dispute_explanations")
    op.drop_table("dispute_explanations")

    op.drop_index("ix_pdf_packets_user_dispute_created", table_name="pdf_packets")
    op.drop_index("ix_pdf_packets_user_id", table_name="pdf_packets")
    op.drop_index("ix_pdf_packets_id", table_name="pdf_packets")
    op.drop_table("pdf_packets")

    op.drop_index("ix_evidence_files_user_dispute", table_name="evidence_files")
    op.drop_index("ix_evidence_files_user_id", table_name="evidence_files")
    op.drop_index("ix_evidence_files_id", table_name="evidence_files")
    op.drop_table("evidence_files")
    sa.Enum(name="evidencekind").drop(op.get_bind(), checkfirst=True)
