import threading

from sessions import SessionStore, new_token


def test_issue_and_validate():
    store = SessionStore()
    token = store.issue()
    assert isinstance(token, str) and token
    assert store.is_valid(token)
    assert token in store
    assert len(store) == 1


def test_unknown_and_empty_tokens_are_invalid():
    store = SessionStore()
    store.issue()
    assert not store.is_valid("nope")
    assert not store.is_valid("")
    assert not store.is_valid(None)
    assert None not in store


def test_tokens_are_unique():
    tokens = {new_token() for _ in range(500)}
    assert len(tokens) == 500


def test_concurrent_issue_keeps_every_token():
    store = SessionStore()
    issued = []
    lock = threading.Lock()

    def worker():
        mine = [store.issue() for _ in range(50)]
        with lock:
            issued.extend(mine)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 400
    assert all(store.is_valid(t) for t in issued)
