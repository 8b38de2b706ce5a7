"""repositories table."""

import uuid
from typing import Optional

from sqlalchemy import Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from commitlens.core.database import Base, TimestampMixin


class Repository(TimestampMixin, Base):
    __tablename__ = "repositories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
