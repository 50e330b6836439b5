import fnmatch

import pytest
import redis

from counselor.config import StoreConfig
from counselor.models import Course
from counselor.store import (
    LEGACY_KEYS,
    STORAGE_KEYS,
    MemoryPlanStore,
    RedisPlanStore,
    StorageManager,
    StoreError,
    create_store,
    grade_calculator_key,
)
from counselor.parsers import plan_to_dict


class FakeRedis:
    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)

    def flushdb(self):
        self.data.clear()

    def scan_iter(self, match="*"):
        return [key for key in self.data if fnmatch.fnmatchcase(key, match)]


class BrokenRedis(FakeRedis):
    def get(self, key):
        raise redis.ConnectionError("connection refused")

    def set(self, key, value):
        raise redis.ConnectionError("connection refused")


class Clock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def backend():
    return MemoryPlanStore()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def store(backend, clock):
    return StorageManager(backend, namespace="test", recent_courses_limit=3, clock=clock)


def test_memory_store_copies_values(backend):
    value = {"a": [1, 2]}
    backend.set("k", value)
    value["a"].append(3)
    assert backend.get("k") == {"a": [1, 2]}
    backend.delete("k")
    backend.delete("k")
    assert backend.get("k") is None


def test_memory_store_rejects_unencodable(backend):
    with pytest.raises(StoreError):
        backend.set("k", object())


def test_redis_store_round_trip():
    client = FakeRedis()
    backend = RedisPlanStore(client=client)
    backend.set("plan", {"years": []})
    assert client.data["plan"] == '{"years": []}'
    assert backend.get("plan") == {"years": []}
    assert backend.get("missing") is None

    client.data["raw"] = "not json"
    assert backend.get("raw") == "not json"

    backend.clear()
    assert client.data == {}


def test_redis_clear_keeps_other_namespaces():
    client = FakeRedis()
    backend = RedisPlanStore(client=client, namespace="test")
    backend.set("test:theme", "dark")
    backend.set("test:plan", {})
    client.data["other:theme"] = '"light"'
    client.data["unscoped"] = '"x"'

    backend.clear()
    assert client.data == {"other:theme": '"light"', "unscoped": '"x"'}


def test_redis_errors_become_store_errors():
    backend = RedisPlanStore(client=BrokenRedis())
    with pytest.raises(StoreError, match="Redis read failed"):
        backend.get("plan")
    with pytest.raises(StoreError, match="Redis write failed"):
        backend.set("plan", {})


def test_helpers_survive_backend_failure(sample_plan):
    store = StorageManager(RedisPlanStore(client=BrokenRedis()))
    assert store.save_degree_plan(sample_plan) is False
    assert store.load_degree_plan() is None
    assert store.load_user_courses() == []
    assert store.load_theme() == "light"


def test_keys_are_namespaced(store, backend):
    store.save_theme("dark")
    assert backend.keys() == [f"test:{STORAGE_KEYS['THEME']}"]
    assert store.load_theme() == "dark"


def test_degree_plan_round_trip(store, backend, sample_plan):
    assert store.save_degree_plan(sample_plan)
    assert store.load_degree_plan().model_dump() == sample_plan.model_dump()
    saved = backend.get(f"test:{STORAGE_KEYS['DEGREE_PLAN']}")
    assert "lastSaved" in saved
    assert backend.get(f"test:{LEGACY_KEYS['DEGREE_PLAN']}") == saved


def test_degree_plan_legacy_fallback(store, backend, sample_plan):
    backend.set(f"test:{LEGACY_KEYS['DEGREE_PLAN']}", plan_to_dict(sample_plan))
    assert store.load_degree_plan().model_dump() == sample_plan.model_dump()


def test_corrupt_degree_plan_loads_as_none(store, backend):
    backend.set(f"test:{STORAGE_KEYS['DEGREE_PLAN']}", {"years": [{"id": "x"}]})
    assert store.load_degree_plan() is None
    assert StorageManager(MemoryPlanStore()).load_degree_plan() is None


def test_user_courses(store, backend):
    assert store.save_user_courses([Course(name="CPTS 121", credits=4), {"name": "MATH 171"}])
    courses = store.load_user_courses()
    assert courses[0]["name"] == "CPTS 121"
    assert courses[0]["isRequired"] is False
    assert courses[1] == {"name": "MATH 171"}

    backend.delete(f"test:{STORAGE_KEYS['USER_COURSES']}")
    assert len(store.load_user_courses()) == 2


def test_selected_degree_and_preferences(store):
    assert store.load_selected_degree() is None
    assert store.load_preferences() == {}
    store.save_selected_degree({"name": "Computer Science"})
    store.save_preferences({"showUcore": True})
    assert store.load_selected_degree() == {"name": "Computer Science"}
    assert store.load_preferences() == {"showUcore": True}


def test_ucore_cache_expiry(store, backend, clock):
    store.save_ucore_cache({"HUM": ["HISTORY 105"]}, "2024")
    assert store.load_ucore_cache("2024") == {"HUM": ["HISTORY 105"]}
    assert store.load_ucore_cache("2025") is None

    clock.now += 24 * 60 * 60 + 1
    assert store.load_ucore_cache("2024") is None
    assert f"test:{STORAGE_KEYS['UCORE_CACHE']}" not in backend.keys()


def test_clear_ucore_cache(store):
    store.save_ucore_cache({}, "2024")
    assert store.clear_ucore_cache()
    assert store.load_ucore_cache("2024") is None


@pytest.mark.parametrize("value", ["stale", ["HUM"], 42])
def test_ucore_cache_that_is_not_a_mapping_loads_as_none(store, backend, value):
    backend.set(f"test:{STORAGE_KEYS['UCORE_CACHE']}", value)
    assert store.load_ucore_cache("2024") is None


def test_grade_calculator_key():
    assert grade_calculator_key("  CPTS   121 ") == "cpts_121"
    assert grade_calculator_key("") == "default"
    assert grade_calculator_key(None) == "default"


def test_grade_calculator_data(store, clock):
    store.save_grade_calculator_data("CPTS 121", {"categories": []})
    store.save_grade_calculator_data(None, {"categories": [{"name": "Final"}]})

    saved = store.load_grade_calculator_data("cpts 121")
    assert saved == {"categories": [], "updatedAt": clock.now}
    assert store.load_grade_calculator_data("MATH 171") is None

    store.clear_grade_calculator_data("CPTS 121")
    assert store.load_grade_calculator_data("CPTS 121") is None
    assert store.load_grade_calculator_data(None)["categories"] == [{"name": "Final"}]

    store.clear_grade_calculator_data()
    assert store.load_grade_calculator_data(None) is None


def test_recent_courses_move_to_front_and_cap(store):
    for number in ("121", "122", "223", "121", "317"):
        store.save_recent_course({"prefix": "CPTS", "number": number})
    recent = store.load_recent_courses()
    assert [c["number"] for c in recent] == ["317", "121", "223"]
    assert "addedAt" in recent[0]

    store.clear_recent_courses()
    assert store.load_recent_courses() == []


def test_clear_all_data(store, backend, sample_plan):
    store.save_degree_plan(sample_plan)
    store.save_user_courses([{"name": "CPTS 121"}])
    store.save_theme("dark")
    assert store.clear_all_data()
    assert backend.keys() == []
    assert store.load_theme() == "light"


def test_create_store_memory_backend():
    store = create_store(StoreConfig(backend="memory"))
    assert store.save_theme("dark")
    assert store.load_theme() == "dark"


def test_create_store_redis_backend_scopes_clear_to_namespace():
    store = create_store(StoreConfig(backend="redis", namespace="vc"))
    assert isinstance(store._backend, RedisPlanStore)
    assert store._backend._namespace == "vc"
