"""Initial schema for users, uploads, analyses, insights and approvals.

Revision ID: 5b1e7c9a2d40
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '5b1e7c9a2d40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()')),
    )

    op.create_table(
        'document_uploads',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('file_name', sa.String(), nullable=False),
        sa.Column('original_file_name', sa.String(), nullable=False),
        sa.Column('file_path', sa.String(), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('file_type', sa.String(), nullable=False,
                  comment='zip | excel | pdf | image'),
        sa.Column('upload_status', sa.String(), nullable=False, server_default='uploaded',
                  comment='uploaded | processing | completed | error'),
        sa.Column('extracted_files', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text('NOW()')),
        sa.Column('processed_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index('ix_document_uploads_user_id', 'document_uploads', ['user_id'])

    op.create_table(
        'document_analyses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('upload_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('document_uploads.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('file_name', sa.String(), nullable=False),
        sa.Column('worksheet_name', sa.String(), nullable=True),
        sa.Column('analysis_type', sa.String(), nullable=False,
                  comment='mistral_ocr | excel_parse | excel_error | failed'),
        sa.Column('extracted_data', postgresql.JSONB(), nullable=True),
        sa.Column('processed_data', postgresql.JSONB(), nullable=True),
        sa.Column('insights', postgresql.JSONB(), nullable=True,
                  comment='Tagged insight object with kind and schemaVersion'),
        sa.Column('price_data', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('processing_time', sa.Integer(), nullable=True,
                  comment='Milliseconds'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text('NOW()')),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index('ix_document_analyses_upload_id', 'document_analyses', ['upload_id'])
    op.create_index('ix_document_analyses_user_id', 'document_analyses', ['user_id'])

    op.create_table(
        'document_insights',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('analysis_ids', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('insight_type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('data', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('visualization_data', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()')),
    )
    op.create_index('ix_document_insights_user_id', 'document_insights', ['user_id'])

    op.create_table(
        'approval_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('created_by_user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('approved_by_user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('calculation_id', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending',
                  comment='pending | approved | rejected'),
        sa.Column('star_category', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('input_snapshot', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('calculation_snapshot', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('reasons', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('admin_comment', sa.Text(), nullable=True),
        sa.Column('input_hash', sa.String(64), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()')),
        sa.Column('decided_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index('ix_approval_requests_created_by_user_id', 'approval_requests', ['created_by_user_id'])
    op.create_index('ix_approval_requests_status', 'approval_requests', ['status'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('ix_approval_requests_status', table_name='approval_requests')
    op.drop_index('ix_approval_requests_created_by_user_id', table_name='approval_requests')
    op.drop_table('approval_requests')
    op.drop_index('ix_document_insights_user_id', table_name='document_insights')
    op.drop_table('document_insights')
    op.drop_index('ix_document_analyses_user_id', table_name='document_analyses')
    op.drop_index('ix_document_analyses_upload_id', table_name='document_analyses')
    op.drop_table('document_analyses')
    op.drop_index('ix_document_uploads_user_id', table_name='document_uploads')
    op.drop_table('document_uploads')
    op.drop_table('users')
