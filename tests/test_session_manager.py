from datetime import datetime, timedelta

import pytest

from hypertension_coach.common.session_manager import get_session_manager


@pytest.fixture
def manager():
    manager = get_session_manager()
    created = []
    yield manager, created
    for session_id in created:
        manager.delete_session(session_id)


def test_creating_a_session_evicts_expired_ones(manager):
    manager, created = manager
    stale = manager.create_session("stale-session")
    created.extend(["stale-session", "fresh-session"])
    stale.last_accessed = datetime.utcnow() - timedelta(days=30)

    manager.create_session("fresh-session")

    assert "stale-session" not in manager._sessions
    assert manager.get_session("fresh-session") is not None


def test_get_or_create_reuses_live_session(manager):
    manager, created = manager
    created.append("reused-session")
    first = manager.get_or_create("reused-session")
    first.language = "hi"

    assert manager.get_or_create("reused-session") is first
