# workclock/services/preferences_service.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from workclock.core.errors import (
    InvalidTimeZoneError,
    MalformedPreferencesError,
    PersistenceError,
)
from workclock.schemas.preferences import (
    OverrideUpdate,
    Preferences,
    PreferencesUpdate,
    SaveResult,
    parse_stored,
)
from workclock.services.notifier import Notifier
from workclock.services.preferences_store import PreferencesStore
from workclock.services.time_math import is_valid_timezone

logger = logging.getLogger(__name__)

Mutation = Callable[[Dict[str, Any]], None]


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class PreferencesService:
    """
    Owns the in-memory copy of the preferences aggregate.

    Behavior
    --------
    - The aggregate is loaded once and held in memory.
    - Every mutation re-reads the latest stored copy, applies only its own
      field-level change to it and writes the whole object back, so edits
      made by another session to other fields are not clobbered.
    - A rejected write is reported through the notifier as an error notice;
      the in-memory state keeps the change.
    """

    def __init__(
        self,
        store: PreferencesStore,
        notifier: Notifier,
        key: str,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._key = key
        self._clock = clock
        self._current: Optional[Preferences] = None

    @property
    def key(self) -> str:
        return self._key

    async def current(self) -> Preferences:
        if self._current is None:
            await self.reload()
        return self._current  # type: ignore[return-value]

    async def reload(self) -> Preferences:
        """
        Load the aggregate from the store, falling back to defaults when it
        cannot be read or parsed.
        """
        try:
            raw = await self._store.load(self._key)
        except PersistenceError:
            logger.exception("PersistenceFailure while loading preferences; using defaults")
            raw = None

        self._current = Preferences.from_stored(raw)
        return self._current

    async def _latest_stored(self) -> Dict[str, Any]:
        try:
            return parse_stored(await self._store.load(self._key))
        except MalformedPreferencesError as exc:
            logger.warning("MalformedPreferences in store, overwriting: %s", exc)
            return {}
        except PersistenceError:
            logger.exception("PersistenceFailure reading latest preferences; merging into memory copy")
            current = await self.current()
            return current.to_stored()

    async def _commit(self, mutate: Mutation, message: str) -> SaveResult:
        latest = await self._latest_stored()
        mutate(latest)

        prefs = Preferences.from_stored(latest)
        self._current = prefs

        try:
            await self._store.save(self._key, prefs.to_json())
        except PersistenceError as exc:
            logger.exception("PersistenceFailure while saving preferences")
            self._notifier.notify("error", f"Could not save settings: {exc}")
            return SaveResult(saved=False, message=str(exc), preferences=prefs.to_stored())

        self._notifier.notify("success", message)
        return SaveResult(saved=True, message=message, preferences=prefs.to_stored())

    async def save_defaults(self, update: PreferencesUpdate) -> SaveResult:
        """
        Apply the provided default-schedule and display fields.
        """
        delta = update.model_dump(mode="json", by_alias=True, exclude_none=True)

        def mutate(latest: Dict[str, Any]) -> None:
            latest.update(delta)

        return await self._commit(mutate, "Settings saved.")

    @staticmethod
    def _overrides_of(latest: Dict[str, Any]) -> Dict[str, Any]:
        overrides = latest.get("userOverrides")
        return dict(overrides) if isinstance(overrides, dict) else {}

    async def upsert_override(self, key: str, update: OverrideUpdate) -> SaveResult:
        """
        Create or replace the override stored under `key`.

        Raises InvalidTimeZoneError when a non-empty timezone does not
        resolve; nothing is written in that case.
        """
        if update.timezone and not is_valid_timezone(update.timezone):
            raise InvalidTimeZoneError(update.timezone)

        entry = {
            "timezone": update.timezone or None,
            "startHour": update.start_hour or None,
            "endHour": update.end_hour or None,
            "source": update.source or "manual",
            "updatedAt": _epoch_ms(self._clock()),
        }
        entry = {k: v for k, v in entry.items() if v is not None}

        def mutate(latest: Dict[str, Any]) -> None:
            overrides = self._overrides_of(latest)
            overrides[key] = entry
            latest["userOverrides"] = overrides

        return await self._commit(mutate, "Override saved.")

    async def add_override(self, user_id: str) -> SaveResult:
        """
        Seed an override for a numeric user id with the default hours.

        An existing override for the id is left untouched.
        """
        user_id = (user_id or "").strip()
        if not user_id.isdigit():
            raise ValueError("Please enter a numeric user id (digits only).")

        prefs = await self.current()
        seed = {
            "startHour": prefs.start_hour,
            "endHour": prefs.end_hour,
            "source": "manual",
            "updatedAt": _epoch_ms(self._clock()),
        }

        def mutate(latest: Dict[str, Any]) -> None:
            overrides = self._overrides_of(latest)
            overrides.setdefault(user_id, seed)
            latest["userOverrides"] = overrides

        return await self._commit(mutate, "Override added.")

    async def remove_override(self, key: str) -> SaveResult:
        """
        Delete the override stored under `key`.

        Raises KeyError when the latest stored copy has no such override.
        """
        if key not in self._overrides_of(await self._latest_stored()):
            raise KeyError(key)

        def mutate(latest: Dict[str, Any]) -> None:
            overrides = self._overrides_of(latest)
            overrides.pop(key, None)
            latest["userOverrides"] = overrides

        return await self._commit(mutate, "Override removed.")

    async def export_overrides(self) -> Dict[str, Any]:
        prefs = await self.current()
        return prefs.to_stored().get("userOverrides", {})

    async def import_overrides(self, payload: Any) -> SaveResult:
        """
        Replace all overrides with `payload`, an object mapping keys to
        override objects.

        Raises ValueError for any other shape.
        """
        if not isinstance(payload, dict) or not all(isinstance(v, dict) for v in payload.values()):
            raise ValueError(
                "Invalid format: expected an object mapping keys to override objects."
            )

        imported = {str(k): dict(v) for k, v in payload.items()}

        def mutate(latest: Dict[str, Any]) -> None:
            latest["userOverrides"] = imported

        return await self._commit(mutate, "Overrides imported.")
