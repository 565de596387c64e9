import threading

import pytest

from photoflow.items.models import Item, ItemState


def _item(label="a.jpg", size=3):
    return Item.create_new(label, size)


def test_add_and_get_returns_copy(store):
    item = _item()
    store.add(item, b"abc")

    fetched = store.get(item.id)
    assert fetched == item
    assert fetched is not item

    fetched.state = ItemState.DONE
    assert store.get(item.id).state == ItemState.UPLOADED


def test_put_requires_id(store):
    item = _item()
    item.id = ""
    with pytest.raises(ValueError):
        store.put(item)


def test_get_unknown_returns_none(store):
    assert store.get("missing") is None
    assert store.get_payload("missing") is None
    assert not store.exists("missing")


def test_list_by_state_matches_filter_of_list_all(store):
    states = [ItemState.UPLOADED, ItemState.PROCESSING, ItemState.DONE, ItemState.FAILED]
    for i in range(12):
        item = _item(f"{i}.png")
        item.state = states[i % 4]
        store.add(item, b"x")

    everything = store.list_all()
    assert len(everything) == 12
    for state in ItemState:
        expected = {i.id for i in everything if i.state == state}
        assert {i.id for i in store.list_by_state(state)} == expected


def test_delete_removes_record_and_payload(store):
    item = _item()
    store.add(item, b"abc")

    assert store.delete(item.id) is True
    assert store.get(item.id) is None
    assert store.get_payload(item.id) is None
    assert store.delete(item.id) is False


def test_update_state_bumps_updated_at(store):
    item = _item()
    store.add(item, b"abc")

    updated = store.update_state(item.id, ItemState.PROCESSING)
    assert updated.state == ItemState.PROCESSING
    assert updated.updated_at >= updated.created_at
    assert updated.created_at == item.created_at


def test_update_state_compare_and_set(store):
    item = _item()
    store.add(item, b"abc")

    assert store.update_state(item.id, ItemState.DONE, expected=ItemState.PROCESSING) is None
    assert store.get(item.id).state == ItemState.UPLOADED

    assert store.update_state(item.id, ItemState.PROCESSING, expected=ItemState.UPLOADED) is not None
    assert store.update_state("missing", ItemState.DONE) is None


def test_counts_and_clear(store):
    for label in ("a.jpg", "b.jpg"):
        store.add(_item(label), b"x")
    store.put_payload("orphan", b"y")

    assert store.count() == 2
    assert store.count_by_state() == {"UPLOADED": 2, "PROCESSING": 0, "DONE": 0, "FAILED": 0}

    store.clear()
    assert store.count() == 0
    assert store.get_payload("orphan") is None


def test_concurrent_writers(store):
    def worker(n):
        for i in range(50):
            item = _item(f"{n}-{i}.jpg")
            store.add(item, b"x")
            store.update_state(item.id, ItemState.PROCESSING, expected=ItemState.UPLOADED)
            store.list_by_state(ItemState.PROCESSING)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.count() == 400
    assert len(store.list_by_state(ItemState.PROCESSING)) == 400
