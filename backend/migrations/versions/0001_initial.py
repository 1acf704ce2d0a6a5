"""Initial schema – stored_files and secure_audit_logs

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

stored_files holds upload metadata (the bodies live in object storage);
secure_audit_logs keeps its sensitive columns inside one encrypted envelope.
"""

from alembic import op
import sqlalchemy as sa

# Alembic revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -- stored_files ---------------------------------------------------
    op.create_table(
        "stored_files",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("bucket", sa.String(64), nullable=False),
        sa.Column("object_key", sa.String(255), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("content_type", sa.String(128), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("encrypted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("admin_only", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("uploaded_by", sa.String(255), nullable=True),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("bucket", "object_key", name="uq_stored_files_bucket_key"),
    )
    op.create_index("ix_stored_files_bucket", "stored_files", ["bucket"])

    # -- secure_audit_logs ----------------------------------------------
    op.create_table(
        "secure_audit_logs",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("actor", sa.String(255), nullable=True),
        sa.Column("resource_type", sa.String(64), nullable=True),
        sa.Column("resource_id", sa.String(255), nullable=True),
        sa.Column("severity", sa.String(16), nullable=False, server_default="info"),
        # iv:authTag:ciphertext envelope – never plaintext
        sa.Column("encrypted_data", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_secure_audit_logs_action", "secure_audit_logs", ["action"])
    op.create_index("ix_secure_audit_logs_actor", "secure_audit_logs", ["actor"])


def downgrade() -> None:
    op.drop_index("ix_secure_audit_logs_actor", table_name="secure_audit_logs")
    op.drop_index("ix_secure_audit_logs_action", table_name="secure_audit_logs")
    op.drop_table("secure_audit_logs")
    op.drop_index("ix_stored_files_bucket", table_name="stored_files")
    op.drop_table("stored_files")
