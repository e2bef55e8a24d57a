import uuid
from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        Enum("admin", "employee", name="user_role"),
        nullable=False,
        default="employee",
    )
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    punches: Mapped[list["Punch"]] = relationship(
        "Punch", back_populates="user", lazy="raise"
    )
    work_updates: Mapped[list["WorkUpdate"]] = relationship(
        "WorkUpdate", back_populates="user", lazy="raise"
    )
    lead_uploads: Mapped[list["LeadUpload"]] = relationship(
        "LeadUpload", back_populates="uploader", lazy="raise"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def display_name(self) -> str:
        if self.full_name and self.full_name.strip():
            return self.full_name.strip()
        if self.email:
            return self.email.split("@")[0]
        return self.username

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username} role={self.role}>"


class Punch(Base):
    __tablename__ = "punches"

    __table_args__ = (
        Index("ix_punches_user_time", "user_id", "timestamp"),
        Index("ix_punches_timestamp", "timestamp"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    direction: Mapped[str] = mapped_column(
        Enum("IN", "OUT", name="punch_direction"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="punches")

    def __repr__(self) -> str:
        return (
            f"<Punch id={self.id} user_id={self.user_id} "
            f"timestamp={self.timestamp} direction={self.direction}>"
        )


class WorkUpdate(Base):
    __tablename__ = "work_updates"

    __table_args__ = (Index("ix_work_updates_user_date", "user_id", "update_date"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    update_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="work_updates")

    def __repr__(self) -> str:
        return f"<WorkUpdate id={self.id} user_id={self.user_id} date={self.update_date}>"


class LeadUpload(Base):
    __tablename__ = "lead_uploads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    lead_source: Mapped[str] = mapped_column(String(255), nullable=False)
    total_leads: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    uploaded_by: Mapped[str] = mapped_column(String(255), nullable=False)
    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    logs: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    uploader: Mapped["User | None"] = relationship("User", back_populates="lead_uploads")

    def __repr__(self) -> str:
        return (
            f"<LeadUpload id={self.id} file_name={self.file_name} "
            f"total_leads={self.total_leads}>"
        )


TASK_STATUSES = ("Assigned", "In Progress", "Completed", "On Hold")
TASK_PRIORITIES = ("Low", "Medium", "High", "Critical")


class Task(Base):
    __tablename__ = "tasks"

    __table_args__ = (
        Index("ix_tasks_assigned_to_due", "assigned_to", "due_date"),
        Index("ix_tasks_assigned_by_due", "assigned_by", "due_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    assigned_to: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    priority: Mapped[str] = mapped_column(
        Enum(*TASK_PRIORITIES, name="task_priority"), nullable=False, default="Medium"
    )
    status: Mapped[str] = mapped_column(
        Enum(*TASK_STATUSES, name="task_status"), nullable=False, default="Assigned"
    )
    last_activity: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<Task id={self.id} to={self.assigned_to} due={self.due_date} "
            f"status={self.status}>"
        )
