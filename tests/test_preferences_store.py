# tests/test_preferences_store.py
import json

import pytest

from workclock.db.session import build_engine, build_session_factory, init_db
from workclock.services.preferences_store import PreferencesStore


@pytest.mark.asyncio
async def test_store_round_trips_strings_and_objects(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await init_db(engine)
    store = PreferencesStore(build_session_factory(engine))

    try:
        assert await store.load("workclock:user:settings") is None

        await store.save("workclock:user:settings", {"timezone": "UTC"})
        assert json.loads(await store.load("workclock:user:settings")) == {"timezone": "UTC"}

        # overwrite in place with raw text
        await store.save("workclock:user:settings", '{"timezone": "Asia/Tokyo"}')
        assert await store.load("workclock:user:settings") == '{"timezone": "Asia/Tokyo"}'

        assert await store.load("other-key") is None
    finally:
        await engine.dispose()
