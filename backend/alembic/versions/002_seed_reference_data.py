"""Seed reference data

Revision ID: 002
Revises: 001
Create Date: 2025-01-15 00:05:00.000000+00:00

What:  Loads the shipped vocabularies (tags, interests, food categories,
       travel styles) from tripmatch.reference_data.
"""

import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from tripmatch import reference_data

# revision identifiers
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

tags = sa.table(
    "tags",
    sa.column("id", sa.Uuid()),
    sa.column("name", sa.String()),
    sa.column("kind", sa.String()),
)
interests = sa.table(
    "interests",
    sa.column("code", sa.String()),
    sa.column("display_name", sa.String()),
    sa.column("icon", sa.String()),
    sa.column("category", sa.String()),
    sa.column("sort_order", sa.Integer()),
)
food_categories = sa.table(
    "food_categories",
    sa.column("code", sa.String()),
    sa.column("display_name", sa.String()),
    sa.column("icon", sa.String()),
    sa.column("description", sa.Text()),
    sa.column("sort_order", sa.Integer()),
)
travel_styles = sa.table(
    "travel_styles",
    sa.column("code", sa.String()),
    sa.column("display_name", sa.String()),
    sa.column("icon", sa.String()),
    sa.column("category", sa.String()),
    sa.column("sort_order", sa.Integer()),
)


def upgrade() -> None:
    op.bulk_insert(tags, [{"id": uuid.uuid4(), **row} for row in reference_data.tag_rows()])
    op.bulk_insert(interests, reference_data.interest_rows())
    op.bulk_insert(food_categories, reference_data.food_category_rows())
    op.bulk_insert(travel_styles, reference_data.travel_style_rows())


def downgrade() -> None:
    op.execute(travel_styles.delete())
    op.execute(food_categories.delete())
    op.execute(interests.delete())
    op.execute(tags.delete())
