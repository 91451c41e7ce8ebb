from __future__ import annotations

import itertools
from typing import Any, Dict, List, Tuple

from flow_history.capture import (
    DEBOUNCE_TIMER,
    SETTLE_TIMER,
    CaptureController,
    CaptureState,
)
from flow_history.config import HistoryConfig
from flow_history.document import FlowDocument
from flow_history.events import (
    HISTORY_COMMIT,
    HISTORY_RESET,
    HISTORY_SETTLED,
    HISTORY_SKIP,
    HISTORY_UNDO,
    HistoryBus,
)
from flow_history.history import HistoryStore, Viewport


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms / 1000.0


class FakeDocument:
    """Accessor/mutator pair without notifications or transactions."""

    def __init__(self, nodes=(), edges=()) -> None:
        self.nodes = list(nodes)
        self.edges = list(edges)
        self.viewport = Viewport()
        self.writes: List[str] = []

    def get_nodes(self):
        return self.nodes

    def get_edges(self):
        return self.edges

    def get_viewport(self):
        return self.viewport

    def set_nodes(self, nodes) -> None:
        self.writes.append("nodes")
        self.nodes = list(nodes)

    def set_edges(self, edges) -> None:
        self.writes.append("edges")
        self.edges = list(edges)

    def set_viewport(self, viewport) -> None:
        self.writes.append("viewport")
        self.viewport = viewport


def node(node_id: str, **data: Any) -> Dict[str, Any]:
    return {"id": node_id, "data": data}


def make_controller(
    document: Any, **config: Any
) -> Tuple[CaptureController, FakeClock]:
    clock = FakeClock()
    counter = itertools.count(1)
    controller = CaptureController(
        document,
        document,
        config=HistoryConfig(**config),
        clock=clock,
        timestamp=lambda: next(counter),
    )
    return controller, clock


def make_attached(*nodes: Dict[str, Any], **config: Any):
    document = FlowDocument(nodes)
    controller, clock = make_controller(document, **config)
    controller.attach(document)
    return document, controller, clock


def ids(snapshot) -> List[str]:
    return [item["id"] for item in snapshot.nodes]


def test_fresh_controller_holds_only_the_baseline() -> None:
    document, controller, _ = make_attached(node("a"))

    assert len(controller.store) == 1
    assert controller.state is CaptureState.IDLE
    assert controller.can_undo() is False
    assert controller.can_redo() is False
    assert ids(controller.get_current_snapshot()) == ["a"]


def test_mutation_arms_debounce_and_commit_after_deadline() -> None:
    document, controller, clock = make_attached(node("a"))

    document.add_node(node("b"))
    assert controller.state is CaptureState.PENDING_CAPTURE

    clock.advance(499)
    assert controller.process_timers() == {}
    assert len(controller.store) == 1

    clock.advance(2)
    assert controller.process_timers() == {DEBOUNCE_TIMER: True}
    assert controller.state is CaptureState.IDLE
    assert len(controller.store) == 2
    assert controller.can_undo() is True


def test_burst_of_signals_coalesces_into_one_entry() -> None:
    document = FakeDocument([node("a")])
    controller, clock = make_controller(document)

    for label in ("b", "c", "d"):
        document.nodes = [*document.nodes, node(label)]
        controller.save_snapshot()
        clock.advance(200)

    # Changed after the last signal but before the timer fires.
    document.nodes = [*document.nodes, node("e")]
    clock.advance(400)
    controller.process_timers()

    assert len(controller.store) == 2
    assert ids(controller.get_current_snapshot()) == ["a", "b", "c", "d", "e"]


def test_rearming_replaces_the_pending_timer() -> None:
    document = FakeDocument([node("a")])
    controller, clock = make_controller(document)

    controller.save_snapshot()
    first_deadline = controller.next_deadline()
    clock.advance(300)
    controller.save_snapshot()

    assert controller.next_deadline() > first_deadline
    clock.advance(300)
    # The first deadline has passed but it was replaced.
    assert controller.process_timers() == {}
    assert controller.state is CaptureState.PENDING_CAPTURE


def test_undo_and_redo_restore_the_document() -> None:
    document, controller, clock = make_attached(node("a"))
    document.add_node(node("b"))
    controller.flush()

    assert controller.undo() is True
    assert ids(controller.get_current_snapshot()) == ["a"]
    assert [item["id"] for item in document.get_nodes()] == ["a"]
    assert controller.can_undo() is False
    assert controller.can_redo() is True

    clock.advance(100)
    controller.process_timers()

    assert controller.redo() is True
    assert [item["id"] for item in document.get_nodes()] == ["a", "b"]
    assert controller.can_redo() is False


def test_restore_is_not_recaptured() -> None:
    document, controller, clock = make_attached(node("a"))
    document.add_node(node("b"))
    controller.flush()

    controller.undo()

    assert controller.state is CaptureState.RESTORING
    assert controller.next_deadline() == clock.now + 0.1
    clock.advance(1000)
    assert controller.process_timers() == {SETTLE_TIMER: True}
    assert controller.state is CaptureState.IDLE
    assert len(controller.store) == 2
    assert controller.can_redo() is True


def test_mutation_signals_while_restoring_are_ignored() -> None:
    document, controller, clock = make_attached(node("a"))
    document.add_node(node("b"))
    controller.flush()
    controller.undo()

    document.add_node(node("late"))
    controller.save_snapshot()

    assert controller.state is CaptureState.RESTORING
    assert controller.flush() == {SETTLE_TIMER: True}
    assert len(controller.store) == 2
    assert controller.can_redo() is True


def test_undo_cancels_pending_capture() -> None:
    document, controller, clock = make_attached(node("a"))
    document.add_node(node("b"))
    controller.flush()

    document.add_node(node("c"))
    assert controller.state is CaptureState.PENDING_CAPTURE
    controller.undo()

    clock.advance(1000)
    assert controller.process_timers() == {SETTLE_TIMER: True}
    assert len(controller.store) == 2


def test_second_restore_while_settling_rearms_settle_timer() -> None:
    document, controller, clock = make_attached(node("a"))
    for label in ("b", "c"):
        document.add_node(node(label))
        controller.flush()

    controller.undo()
    clock.advance(60)
    controller.undo()
    clock.advance(60)

    assert controller.process_timers() == {}
    assert controller.state is CaptureState.RESTORING
    clock.advance(60)
    assert controller.process_timers() == {SETTLE_TIMER: True}
    assert ids(controller.get_current_snapshot()) == ["a"]


def test_noop_undo_and_redo_leave_state_untouched() -> None:
    document, controller, _ = make_attached(node("a"))

    assert controller.undo() is False
    assert controller.redo() is False
    assert controller.state is CaptureState.IDLE
    assert controller.next_deadline() is None
    assert controller.can_redo() is False


def test_viewport_only_change_is_skipped_by_default() -> None:
    document, controller, _ = make_attached(node("a"))

    document.set_viewport({"x": 100, "y": 40, "zoom": 2})
    assert controller.flush() == {DEBOUNCE_TIMER: False}

    assert controller.can_undo() is False
    assert len(controller.store) == 1


def test_viewport_only_change_recorded_when_not_skipped() -> None:
    document, controller, _ = make_attached(node("a"), skip_viewport_only=False)

    document.set_viewport({"x": 100, "y": 40, "zoom": 2})
    controller.flush()

    assert controller.can_undo() is True
    assert controller.get_current_snapshot().viewport == Viewport(100, 40, 2)


def test_restore_writes_viewport_with_content() -> None:
    document, controller, _ = make_attached(node("a"))
    document.set_viewport({"x": 5, "y": 5, "zoom": 1})
    document.add_node(node("b"))
    controller.flush()

    document.set_viewport({"x": 300, "y": 0, "zoom": 0.5})
    controller.flush()
    controller.undo()

    assert document.get_viewport() == Viewport(0.0, 0.0, 1.0)


def test_restore_is_observed_as_one_consistent_change() -> None:
    document, controller, _ = make_attached(node("a"))
    document.add_edge({"id": "e1", "source": "a", "target": "a"})
    document.add_node(node("b"))
    controller.flush()
    observed: List[Tuple[int, int]] = []
    document.subscribe(
        lambda: observed.append(
            (len(document.get_nodes()), len(document.get_edges()))
        )
    )

    controller.undo()

    assert observed == [(1, 0)]


def test_restore_without_transaction_writes_all_fields() -> None:
    document = FakeDocument([node("a")])
    controller, _ = make_controller(document)
    document.nodes = [node("a"), node("b")]
    controller.save_snapshot()
    controller.flush()

    assert controller.undo() is True
    assert document.writes == ["nodes", "edges", "viewport"]
    assert ids(controller.get_current_snapshot()) == ["a"]


def test_capture_after_restore_compares_against_restored_snapshot() -> None:
    document, controller, _ = make_attached(node("a"))
    document.add_node(node("b"))
    controller.flush()
    controller.undo()
    controller.flush()

    # Panning after an undo must not wipe the redo branch.
    document.set_viewport({"x": 1, "y": 1, "zoom": 1})
    controller.flush()

    assert controller.can_redo() is True
    assert len(controller.store) == 2


def test_commit_after_undo_truncates_redo_branch() -> None:
    document, controller, _ = make_attached(node("s1"))
    for label in ("s2", "s3"):
        document.set_nodes([node("s1"), node(label)])
        controller.flush()

    controller.undo()
    controller.flush()
    controller.undo()
    controller.flush()
    document.set_nodes([node("s1"), node("s2-prime")])
    controller.flush()

    assert [ids(entry) for entry in controller.store.entries] == [
        ["s1"],
        ["s1", "s2-prime"],
    ]
    assert controller.can_redo() is False


def test_history_bound_applies_through_controller() -> None:
    document, controller, _ = make_attached(max_history_size=5)
    for index in range(7):
        document.add_node(node(f"n{index}"))
        controller.flush()

    assert len(controller.store) == 5
    assert ids(controller.store.entries[0]) == ["n0", "n1", "n2"]
    assert ids(controller.store.entries[-1]) == [f"n{index}" for index in range(7)]


def test_reset_clears_history_and_rebaselines() -> None:
    document, controller, _ = make_attached(node("a"))
    events: List[object] = []
    controller.bus.subscribe(HISTORY_RESET, events.append)
    document.add_node(node("b"))
    controller.flush()
    document.add_node(node("c"))

    controller.reset()

    assert len(controller.store) == 1
    assert controller.state is CaptureState.IDLE
    assert controller.next_deadline() is None
    assert ids(controller.get_current_snapshot()) == ["a", "b", "c"]
    assert events and events[-1]["size"] == 1


def test_dispose_drops_pending_capture() -> None:
    document, controller, _ = make_attached(node("a"))
    document.add_node(node("b"))

    controller.dispose()

    assert controller.flush() == {}
    assert len(controller.store) == 1
    document.add_node(node("c"))
    assert controller.state is CaptureState.PENDING_CAPTURE


def test_bus_announces_commit_skip_undo_and_settle() -> None:
    document, controller, _ = make_attached(node("a"))
    events: List[Tuple[str, object]] = []
    for name in (HISTORY_COMMIT, HISTORY_SKIP, HISTORY_UNDO, HISTORY_SETTLED):
        controller.bus.subscribe(
            name, lambda payload, name=name: events.append((name, payload))
        )

    document.add_node(node("b"))
    controller.flush()
    document.set_viewport({"x": 3})
    controller.flush()
    controller.undo()
    controller.flush()

    names = [name for name, _ in events]
    assert names == [HISTORY_COMMIT, HISTORY_SKIP, HISTORY_UNDO, HISTORY_SETTLED]
    commit_payload = events[0][1]
    assert commit_payload == {
        "cursor": 1,
        "size": 2,
        "can_undo": True,
        "can_redo": False,
    }


def test_restore_snapshot_none_is_noop() -> None:
    document, controller, _ = make_attached(node("a"))

    assert controller.restore_snapshot(None) is False
    assert controller.state is CaptureState.IDLE


def test_controller_without_baseline_starts_empty() -> None:
    document = FakeDocument([node("a")])
    controller = CaptureController(document, document, baseline=False)

    assert len(controller.store) == 0
    assert controller.get_current_snapshot() is None
    controller.save_snapshot()
    controller.flush()
    assert len(controller.store) == 1


def test_supplied_store_and_bus_are_used() -> None:
    document = FakeDocument([node("a")])
    store = HistoryStore(max_size=5)
    bus = HistoryBus()
    controller = CaptureController(document, document, store=store, bus=bus)

    assert controller.store is store
    assert controller.bus is bus
    assert len(store) == 1
    for index in range(8):
        document.nodes = [*document.nodes, node(f"n{index}")]
        controller.save_snapshot()
        controller.flush()

    assert len(store) == 5
    assert store.max_size == 5


def test_is_restoring_tracks_settle_window() -> None:
    document, controller, _ = make_attached(node("a"))
    document.add_node(node("b"))
    controller.flush()

    assert controller.is_restoring is False
    controller.undo()
    assert controller.is_restoring is True
    controller.flush()
    assert controller.is_restoring is False
