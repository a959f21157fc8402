import enum
import uuid
from datetime import date

from sqlalchemy import Boolean, Column, Date, Enum, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moafinder.database import Base, TimestampMixin
from moafinder.events.recurrence import (
    EventType,
    MonthlyMode,
    RecurrenceDescriptor,
    WeekIndex,
    Weekday,
    descriptor_from_fields,
    descriptor_to_fields,
)
from moafinder.tags.models import Tag


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    ARCHIVED = "archived"


event_tags = Table(
    "event_tags",
    Base.metadata,
    Column("event_id", ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Event(TimestampMixin, Base):
    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(70), nullable=False)
    subtitle: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    time_from: Mapped[str | None] = mapped_column(String(5), nullable=True)
    time_to: Mapped[str | None] = mapped_column(String(5), nullable=True)

    # Recurrence, flattened; see events.recurrence for the variant rules.
    event_type: Mapped[EventType] = mapped_column(
        Enum(EventType), default=EventType.ONCE, nullable=False
    )
    days_of_week: Mapped[str | None] = mapped_column(String(30), nullable=True)
    monthly_mode: Mapped[MonthlyMode | None] = mapped_column(Enum(MonthlyMode), nullable=True)
    monthly_day_of_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    monthly_week_index: Mapped[WeekIndex | None] = mapped_column(Enum(WeekIndex), nullable=True)
    monthly_weekday: Mapped[Weekday | None] = mapped_column(Enum(Weekday), nullable=True)
    repeat_until: Mapped[date | None] = mapped_column(Date, nullable=True)

    location_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    organizer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    is_accessible: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    cost_is_free: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    cost_details: Mapped[str | None] = mapped_column(String(255), nullable=True)
    registration_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    registration_details: Mapped[str | None] = mapped_column(String(255), nullable=True)

    status: Mapped[EventStatus] = mapped_column(
        Enum(EventStatus), default=EventStatus.PENDING, nullable=False, index=True
    )
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    tags: Mapped[list[Tag]] = relationship(secondary=event_tags, lazy="selectin")

    @property
    def recurrence(self) -> RecurrenceDescriptor:
        """The stored recurrence as a descriptor variant.

        Raises InvalidDescriptor if the stored columns are inconsistent.
        """
        return descriptor_from_fields(
            self.event_type,
            days_of_week=self.days_of_week.split(",") if self.days_of_week else None,
            monthly_mode=self.monthly_mode,
            monthly_day_of_month=self.monthly_day_of_month,
            monthly_week_index=self.monthly_week_index,
            monthly_weekday=self.monthly_weekday,
            repeat_until=self.repeat_until,
        )

    @recurrence.setter
    def recurrence(self, descriptor: RecurrenceDescriptor) -> None:
        fields = descriptor_to_fields(descriptor)
        days = fields.pop("days_of_week")
        self.days_of_week = ",".join(days) if days else None
        for name, value in fields.items():
            setattr(self, name, value)

    @property
    def tag_ids(self) -> list[uuid.UUID]:
        return [tag.id for tag in self.tags]
