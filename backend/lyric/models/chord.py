"""
Chord diagram models.
"""

from typing import List, Optional

from sqlalchemy import JSON, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lyric.core.database import Base


class Chord(Base):
    """Named chord (looked up case-insensitively)."""

    __tablename__ = "chords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(32), nullable=False, index=True)

    positions: Mapped[List["ChordPosition"]] = relationship(
        "ChordPosition",
        back_populates="chord",
        cascade="all, delete-orphan",
        order_by="ChordPosition.id",
    )

    def __repr__(self) -> str:
        return f"<Chord(id={self.id!r}, name={self.name!r})>"


class ChordPosition(Base):
    """
    One fingering of a chord.

    frets holds one entry per string; fingers may contain nulls for strings
    played open or muted.
    """

    __tablename__ = "chord_positions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chord_id: Mapped[int] = mapped_column(
        ForeignKey("chords.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    base_fret: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    frets: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    fingers: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    chord: Mapped["Chord"] = relationship("Chord", back_populates="positions")
