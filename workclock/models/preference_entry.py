# workclock/models/preference_entry.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from workclock.db.base import Base


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class PreferenceEntry(Base):
    """
    One key of the key-value preferences store.

    The whole preferences aggregate lives under a single key as JSON text.
    """

    __tablename__ = "preference_entries"

    key = Column(String(255), primary_key=True)

    value = Column(
        Text,
        nullable=True,
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utc_now,
        onupdate=_utc_now,
    )

    def __repr__(self) -> str:
        return f"<PreferenceEntry key={self.key!r} updated_at={self.updated_at}>"
