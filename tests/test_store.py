"""Entity store tests: seeding, lookups, shallow updates, atomic appends."""
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from verkove.db.store import EntityStore
from verkove.errors import InvalidInputError, NotFoundError
from verkove.types import ChatMessage, DesignData, DesignIteration, OrderSpecifications


@pytest.fixture
def store():
    return EntityStore()


def _iteration(n: int) -> DesignIteration:
    return DesignIteration(id=str(n), image_url=f"/uploads/{n}.png", prompt=f"prompt {n}")


class TestCatalog:
    def test_seeded(self, store):
        designs = store.list_base_designs()
        assert len(designs) == 6
        assert designs[0].id == 1
        assert designs[0].name == "Classic Solitaire"
        assert designs[0].specifications.materials == ["Platinum", "Diamond"]
        assert len(store.list_sub_designs()) == 6

    def test_by_category(self, store):
        rings = store.list_by_category("rings")
        assert [d.name for d in rings] == ["Classic Solitaire", "Art Deco Luxury"]
        assert store.list_by_category("Rings") == []

    def test_missing(self, store):
        assert store.get_base_design(999) is None
        assert store.get_sub_design(999) is None

    def test_unseeded(self):
        assert EntityStore(seed=False).list_base_designs() == []

    def test_invalid_base_design(self, store):
        with pytest.raises(InvalidInputError):
            store.create_base_design("X", "tiaras", "d", "https://example.com/x.jpg")


class TestIds:
    def test_per_kind_sequences(self, store):
        # Base designs used 1..6; projects start their own sequence.
        project = store.create_project("First")
        assert project.id == 1
        assert store.create_project("Second").id == 2
        assert store.create_sub_design("Filigree", "modification", "d", "fas fa-leaf").id == 7

    def test_next_id_monotonic(self, store):
        ids = [store.next_id("iteration") for _ in range(5)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 5


class TestProjects:
    def test_create_defaults(self, store):
        p = store.create_project("Custom Classic Solitaire", base_design_id=1)
        assert p.status == "draft"
        assert p.chat_history == [] and p.design_iterations == []
        assert p.created_at == p.updated_at

    def test_create_requires_name(self, store):
        with pytest.raises(InvalidInputError):
            store.create_project("")

    def test_update_merges_and_refreshes(self, store):
        p = store.create_project("Ring", base_design_id=1)
        updated = store.update_project(p.id, name="Renamed")
        assert updated.name == "Renamed"
        assert updated.base_design_id == 1
        assert updated.updated_at >= p.updated_at
        assert store.get_project(p.id).name == "Renamed"

    def test_update_replaces_lists(self, store):
        p = store.create_project("Ring", design_iterations=[_iteration(1), _iteration(2)])
        updated = store.update_project(p.id, design_iterations=[_iteration(3)])
        assert [i.id for i in updated.design_iterations] == ["3"]

    def test_update_missing(self, store):
        with pytest.raises(NotFoundError):
            store.update_project(42, name="nope")

    def test_update_unknown_field(self, store):
        p = store.create_project("Ring")
        with pytest.raises(InvalidInputError):
            store.update_project(p.id, price=10)

    def test_status_machine(self, store):
        p = store.create_project("Ring")
        store.update_project(p.id, status="manufacturing")
        with pytest.raises(InvalidInputError):
            store.update_project(p.id, status="draft")

    def test_stale_status_dropped_when_allowed(self, store):
        p = store.create_project("Ring")
        store.update_project(p.id, status="manufacturing")
        updated = store.update_project(p.id, stale_status_ok=True, status="draft", name="Echoed")
        assert updated.status == "manufacturing"
        assert updated.name == "Echoed"

    def test_unknown_status_still_rejected(self, store):
        p = store.create_project("Ring")
        with pytest.raises(InvalidInputError):
            store.update_project(p.id, stale_status_ok=True, status="shipped")

    def test_snapshots_are_stable(self, store):
        p = store.create_project("Ring")
        store.record_iteration(p.id, _iteration(1))
        assert p.design_iterations == []


class TestAppends:
    def test_record_iteration(self, store):
        p = store.create_project(
            "Ring", current_design_data=DesignData("https://x/base.jpg", "Base design", {"size": 6}),
        )
        updated = store.record_iteration(p.id, _iteration(1))
        assert len(updated.design_iterations) == 1
        assert updated.current_design_data.image_url == "/uploads/1.png"
        assert updated.current_design_data.prompt == "prompt 1"
        assert updated.current_design_data.specifications == {"size": 6}

    def test_append_chat_order(self, store):
        p = store.create_project("Ring")
        user = ChatMessage(id="1", content="hi", is_user=True)
        bot = ChatMessage(id="2", content="hello", is_user=False)
        store.append_chat(p.id, user, bot)
        later = ChatMessage(id="3", content="again", is_user=True)
        history = store.append_chat(p.id, later).chat_history
        assert [m.id for m in history] == ["1", "2", "3"]

    def test_append_missing(self, store):
        with pytest.raises(NotFoundError):
            store.record_iteration(99, _iteration(1))

    def test_concurrent_appends_lose_nothing(self, store):
        p = store.create_project("Ring")
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda n: store.record_iteration(p.id, _iteration(n)), range(200)))
        iterations = store.get_project(p.id).design_iterations
        assert len(iterations) == 200
        assert {i.id for i in iterations} == {str(n) for n in range(200)}


class TestOrders:
    def _specs(self, **overrides):
        values = {"materials": ["Gold"], "weight": "4g", "finish": "Matte", "timeline": "3 weeks", "price": 900.0}
        values.update(overrides)
        return OrderSpecifications(**values)

    def test_update_order(self, store):
        order = store.create_order(1, self._specs())
        assert order.status == "pending"
        assert store.update_order(order.id, "approved").status == "approved"
        assert store.get_order(order.id).status == "approved"

    def test_update_order_missing(self, store):
        with pytest.raises(NotFoundError):
            store.update_order(5, "approved")

    def test_update_order_bad_status(self, store):
        order = store.create_order(1, self._specs())
        with pytest.raises(InvalidInputError):
            store.update_order(order.id, "lost")

    def test_rejects_incomplete_specs(self, store):
        with pytest.raises(InvalidInputError):
            store.create_order(1, self._specs(materials=[]))
        with pytest.raises(InvalidInputError):
            store.create_order(1, OrderSpecifications(materials=["Gold"]))
        assert store.list_orders() == []
