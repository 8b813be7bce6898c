# workclock/services/preferences_store.py
from __future__ import annotations

import json
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workclock.core.errors import PersistenceError
from workclock.models.preference_entry import PreferenceEntry


class PreferencesStore:
    """
    Key-value persistence for the preferences aggregate.

    Values are stored as JSON text. `save` accepts either a JSON string or an
    object, so callers holding an already-parsed value and callers holding
    raw text end up writing the same thing.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load(self, key: str) -> Optional[str]:
        """
        Return the stored JSON text for `key`, or None when nothing is stored.

        Raises PersistenceError when the database cannot be read.
        """
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(PreferenceEntry).where(PreferenceEntry.key == key)
                )
                entry = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load {key!r}: {exc}") from exc

        if entry is None:
            return None
        return entry.value

    async def save(self, key: str, value: Any) -> None:
        """
        Overwrite the value stored under `key` (insert when missing).

        Raises PersistenceError when the write is rejected.
        """
        text = value if isinstance(value, str) else json.dumps(value)

        try:
            async with self._session_factory() as session:
                entry = await session.get(PreferenceEntry, key)
                if entry is None:
                    entry = PreferenceEntry(key=key)
                    session.add(entry)
                entry.value = text
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save {key!r}: {exc}") from exc
