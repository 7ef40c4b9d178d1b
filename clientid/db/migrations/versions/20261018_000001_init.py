from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_000001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "storage_items",
        sa.Column("key", sa.String(length=191), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "cookies",
        sa.Column("name", sa.String(length=191), nullable=False),
        sa.Column("domain", sa.String(length=191), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("name", "domain"),
    )
    op.create_index("ix_cookies_expires_at", "cookies", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_cookies_expires_at", table_name="cookies")
    op.drop_table("cookies")
    op.drop_table("storage_items")
