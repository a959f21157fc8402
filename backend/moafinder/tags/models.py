import enum
import uuid

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from moafinder.database import Base, TimestampMixin


class TagCategory(str, enum.Enum):
    TARGET = "target"
    TOPIC = "topic"
    FORMAT = "format"


class Tag(TimestampMixin, Base):
    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    category: Mapped[TagCategory | None] = mapped_column(Enum(TagCategory), nullable=True)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
