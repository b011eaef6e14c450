import threading
import time

from rentbot.state import ByIndex, FlowKind, FlowState
from rentbot.storage import FlowStateStore


def test_load_missing_returns_none():
    assert FlowStateStore().load("u1") is None


def test_save_and_load_are_isolated_copies():
    store = FlowStateStore()
    state = FlowState(user_id="u1", flow_kind=FlowKind.ADD_UNIT, data={"property": ByIndex(position=1)})
    store.save(state)

    state.step_index = 3
    loaded = store.load("u1")
    assert loaded.step_index == 0

    loaded.data["floor"] = "2"
    assert "floor" not in store.load("u1").data
    assert store.load("u1").data["property"] == ByIndex(position=1)


def test_delete_reports_whether_state_existed():
    store = FlowStateStore()
    store.save(FlowState(user_id="u1", flow_kind=FlowKind.ADD_PROPERTY))

    assert "u1" in store
    assert len(store) == 1
    assert store.delete("u1") is True
    assert store.delete("u1") is False
    assert "u1" not in store


def test_lock_is_reentrant():
    store = FlowStateStore()
    with store.lock("u1"):
        with store.lock("u1"):
            store.save(FlowState(user_id="u1", flow_kind=FlowKind.ADD_TENANT))
    assert store.load("u1").flow_kind == FlowKind.ADD_TENANT


def test_user_locks_are_released_after_use():
    store = FlowStateStore()
    for i in range(100):
        with store.lock(f"user-{i}"):
            store.save(FlowState(user_id=f"user-{i}", flow_kind=FlowKind.ADD_PROPERTY))
        store.delete(f"user-{i}")

    assert store._locks == {}


def test_waiting_thread_shares_the_held_lock():
    store = FlowStateStore()
    entered = threading.Event()
    order = []

    def worker():
        entered.set()
        with store.lock("u1"):
            order.append("worker")

    with store.lock("u1"):
        thread = threading.Thread(target=worker)
        thread.start()
        entered.wait(timeout=1)
        time.sleep(0.05)
        order.append("main")
    thread.join(timeout=1)

    assert order == ["main", "worker"]
    assert store._locks == {}
