from sqlalchemy import String, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, timezone
import uuid
from .db import Base

def _id(prefix="id"): return f"{prefix}_{uuid.uuid4().hex[:10]}"

def _now(): return datetime.now(timezone.utc).replace(tzinfo=None)

class Essay(Base):
    __tablename__ = "essays"
    essay_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: _id("es"))
    title: Mapped[str | None] = mapped_column(String, default=None)
    text: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_now, onupdate=_now)
    highlights: Mapped[list["EssayHighlight"]] = relationship(
        back_populates="essay", cascade="all, delete-orphan", order_by="EssayHighlight.position"
    )

class EssayHighlight(Base):
    __tablename__ = "essay_highlights"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: _id("hl"))
    essay_id: Mapped[str] = mapped_column(String, ForeignKey("essays.essay_id"), index=True)
    position: Mapped[int] = mapped_column(Integer)  # index in the analysis' highlight list
    start_index: Mapped[int] = mapped_column(Integer)
    end_index: Mapped[int] = mapped_column(Integer)
    severity: Mapped[str] = mapped_column(String)
    category: Mapped[str] = mapped_column(String, default="")
    why: Mapped[str] = mapped_column(Text, default="")
    how: Mapped[str] = mapped_column(Text, default="")
    suggestion: Mapped[str] = mapped_column(Text, default="")
    essay: Mapped[Essay] = relationship(back_populates="highlights")
