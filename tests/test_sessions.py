"""Tests for the session store and colour palette."""
import threading

import pytest

from lantern_chat.server import sessions as sessions_module
from lantern_chat.server.errors import ColorError, NicknameError
from lantern_chat.server.palette import AUTO_PALETTE, NAMED_COLORS, resolve_color
from lantern_chat.server.sessions import SessionStore


@pytest.fixture
def store():
    return SessionStore()


def test_resolve_mints_for_missing_or_unknown_token(store):
    first, minted = store.resolve_with_status(None)
    assert minted
    assert first in store

    unknown, minted = store.resolve_with_status("not-a-session")
    assert minted
    assert unknown != "not-a-session"
    assert len(store) == 2


def test_resolve_returns_known_session(store):
    session_id = store.resolve(None)
    assert store.resolve_with_status(session_id) == (session_id, False)
    assert len(store) == 1


def test_session_ids_are_long_and_distinct(store):
    ids = {store.resolve(None) for _ in range(50)}
    assert len(ids) == 50
    assert all(len(session_id) >= 40 for session_id in ids)


def test_session_id_falls_back_when_entropy_fails(store, monkeypatch):
    def broken(_nbytes):
        raise NotImplementedError("no randomness")

    monkeypatch.setattr(sessions_module.secrets, "token_urlsafe", broken)
    session_id = store.resolve(None)
    assert session_id.isdigit()


def test_defaults_before_nickname(store):
    session_id = store.resolve(None)
    assert store.get_nickname(session_id) == "anonymous"
    assert store.get_color(session_id) is None
    assert store.list_members() == []


def test_set_nickname_assigns_color_and_returns_previous(store):
    session_id = store.resolve(None)
    assert store.set_nickname(session_id, "alice") is None
    assert store.get_nickname(session_id) == "alice"
    assert store.get_color(session_id) in AUTO_PALETTE

    color = store.get_color(session_id)
    assert store.set_nickname(session_id, "alice2") == "alice"
    assert store.get_color(session_id) == color


@pytest.mark.parametrize("nickname", ["", "two words", "tab\there", "trailing\n"])
def test_set_nickname_rejects_invalid(store, nickname):
    session_id = store.resolve(None)
    with pytest.raises(NicknameError):
        store.set_nickname(session_id, nickname)
    assert store.get_nickname(session_id) == "anonymous"


def test_nickname_must_be_unique(store):
    alice = store.resolve(None)
    bob = store.resolve(None)
    store.set_nickname(alice, "alice")

    with pytest.raises(NicknameError):
        store.set_nickname(bob, "alice")

    assert store.get_nickname(alice) == "alice"
    assert store.get_nickname(bob) == "anonymous"
    # case-sensitive comparison
    store.set_nickname(bob, "Alice")
    assert store.get_nickname(bob) == "Alice"


def test_setting_own_nickname_again_is_allowed(store):
    alice = store.resolve(None)
    store.set_nickname(alice, "alice")
    assert store.set_nickname(alice, "alice") == "alice"


def test_concurrent_claims_leave_one_owner(store):
    ids = [store.resolve(None) for _ in range(20)]
    winners = []
    barrier = threading.Barrier(len(ids))

    def claim(session_id):
        barrier.wait()
        try:
            store.set_nickname(session_id, "contested")
            winners.append(session_id)
        except NicknameError:
            pass

    threads = [threading.Thread(target=claim, args=(session_id,)) for session_id in ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(winners) == 1
    assert store.find_by_nickname("contested") == winners[0]


def test_set_color_accepts_hex_and_names(store):
    session_id = store.resolve(None)
    assert store.set_color(session_id, "#A1B2C3") == "#a1b2c3"
    assert store.set_color(session_id, "Crimson") == "#dc143c"
    assert store.get_color(session_id) == "#dc143c"


@pytest.mark.parametrize("spec", ["", "reddish", "#12345", "#1234567", "#gggggg", "123456", "#ff0000\n", "crimson\n"])
def test_set_color_rejects_invalid(store, spec):
    session_id = store.resolve(None)
    with pytest.raises(ColorError):
        store.set_color(session_id, spec)
    assert store.get_color(session_id) is None


def test_list_members_and_find_by_nickname(store):
    alice = store.resolve(None)
    bob = store.resolve(None)
    store.resolve(None)
    store.set_nickname(alice, "alice")
    store.set_nickname(bob, "bob")

    assert sorted(store.list_members()) == sorted([(alice, "alice"), (bob, "bob")])
    assert store.find_by_nickname("bob") == bob
    assert store.find_by_nickname("carol") is None


def test_get_author_snapshot(store):
    session_id = store.resolve(None)
    store.set_nickname(session_id, "alice")
    store.set_color(session_id, "navy")
    author = store.get_author(session_id)
    assert (author.id, author.nickname, author.color) == (session_id, "alice", "#000080")


def test_palette_table_is_normalised():
    assert len(NAMED_COLORS) > 100
    assert all(resolve_color(value) == value for value in NAMED_COLORS.values())
    assert resolve_color("RED") == "#ff0000"
