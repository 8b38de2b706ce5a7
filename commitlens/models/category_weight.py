"""category_weights table."""

from sqlalchemy import CheckConstraint, SmallInteger, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from commitlens.core.database import Base, TimestampMixin


class CategoryWeight(TimestampMixin, Base):
    __tablename__ = "category_weights"

    category: Mapped[str] = mapped_column(Text, primary_key=True)
    weight: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, server_default=text("100")
    )

    __table_args__ = (
        CheckConstraint("weight >= 0 AND weight <= 100", name="weight_range"),
    )
