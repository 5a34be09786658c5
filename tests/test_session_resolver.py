from services.session_resolver import SessionResolver


def test_resolves_single_session(ama_store):
    assert SessionResolver(ama_store).resolve(1, 1, 3) == 3


def test_missing_session_is_none(ama_store):
    assert SessionResolver(ama_store).resolve(1, 2, 3) is None


def test_duplicate_sessions_are_not_guessed(ama_store):
    ama_store.add_session(42, 1, 1, 3)

    assert SessionResolver(ama_store).resolve(1, 1, 3) is None


def test_resolver_does_not_create_sessions(ama_store):
    before = dict(ama_store.sessions)

    SessionResolver(ama_store).resolve(9, 9, 9)

    assert ama_store.sessions == before
