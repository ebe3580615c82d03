"""Initial polls, nominations and votes

Revision ID: 3b1f0c9d2e7a
Revises:
Create Date: 2026-10-19 09:12:40.318201
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.schema import CreateSequence, DropSequence, Sequence as SQLASequence

revision: str = '3b1f0c9d2e7a'
down_revision: Union[str, Sequence, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    if op.get_bind().dialect.name == "postgresql":
        return sa.Column('id', sa.Integer(), server_default=sa.text("nextval('id_seq')"), nullable=False)
    return sa.Column('id', sa.Integer(), nullable=False)


def upgrade() -> None:
    """Upgrade schema."""
    is_postgres = op.get_bind().dialect.name == "postgresql"
    if is_postgres:
        # Create the sequence ONCE - before any tables
        op.execute(CreateSequence(SQLASequence('id_seq', start=1000)))

    op.create_table('polls',
        sa.Column('title', sa.String(length=300), nullable=False),
        sa.Column('max_votes', sa.Integer(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('closed_manually', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        _id_column(),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('nominations',
        sa.Column('poll_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('manager', sa.String(length=200), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        _id_column(),
        sa.ForeignKeyConstraint(['poll_id'], ['polls.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_nominations_poll_id', 'nominations', ['poll_id'])

    op.create_table('votes',
        sa.Column('poll_id', sa.Integer(), nullable=False),
        sa.Column('nomination_id', sa.Integer(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        _id_column(),
        sa.ForeignKeyConstraint(['poll_id'], ['polls.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['nomination_id'], ['nominations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_votes_poll_id', 'votes', ['poll_id'])
    op.create_index('ix_votes_nomination_id', 'votes', ['nomination_id'])


def downgrade() -> None:
    """Downgrade schema."""
    # Drop tables first
    op.drop_index('ix_votes_nomination_id', table_name='votes')
    op.drop_index('ix_votes_poll_id', table_name='votes')
    op.drop_table('votes')
    op.drop_index('ix_nominations_poll_id', table_name='nominations')
    op.drop_table('nominations')
    op.drop_table('polls')

    # Drop sequence last
    if op.get_bind().dialect.name == "postgresql":
        op.execute(DropSequence(SQLASequence('id_seq')))
