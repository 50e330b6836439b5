"""
Plan Storage Module

This module persists planner state as JSON blobs under named keys.
It provides:
1. In-memory and Redis-based storage backends
2. Namespaced key management
3. Named helpers for every piece of state the planner keeps
4. Legacy key fallback for plans saved by earlier builds
5. A 24-hour UCORE search cache

Backends raise StoreError when the underlying store fails. The named
helpers are best effort: they log the failure and return False, None or an
empty list so a storage outage never takes the planner down.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
import json
import logging
import time

import redis
from pydantic import ValidationError

from .config import StoreConfig, config
from .models import Course, DegreePlan
from .parsers import course_to_dict, parse_degree_plan, plan_to_dict

# Configure logging
logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    "DEGREE_PLAN": "wsu_vc_degree_plan",
    "SELECTED_DEGREE": "wsu_vc_selected_degree",
    "USER_COURSES": "wsu_vc_user_courses",
    "PREFERENCES": "wsu_vc_preferences",
    "UCORE_CACHE": "wsu_vc_ucore_cache",
    "GRADE_CALCULATOR": "wsu_vc_grade_calculator",
    "RECENT_COURSES": "wsu_vc_recent_courses",
    "THEME": "wsu_vc_theme",
}

# Keys written by earlier builds; still written and read as a fallback
LEGACY_KEYS = {
    "DEGREE_PLAN": "vc-degree-plan",
    "USER_COURSES": "vc_course_schedule",
}

DEFAULT_THEME = "light"


class StoreError(Exception):
    """Raised when a storage backend cannot read or write."""


class PlanStore(ABC):
    """
    Abstract base class for storage backends.

    Values are JSON-serialisable (dicts, lists, strings, numbers).
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a stored value.

        Args:
            key (str): Storage key

        Returns:
            Optional[Any]: Decoded value if present
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Store a value, replacing any previous one.

        Args:
            key (str): Storage key
            value (Any): JSON-serialisable value
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Remove a value; missing keys are ignored.

        Args:
            key (str): Storage key to remove
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every stored value."""
        pass


class MemoryPlanStore(PlanStore):
    """
    In-memory store for a single session and for tests.

    Values are kept JSON-encoded so callers never share mutable state with
    the store.
    """

    def __init__(self):
        """Initialize empty store."""
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error(f"Cannot encode value for '{key}': {str(e)}")
            raise StoreError(f"Cannot encode value for '{key}': {str(e)}")

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> List[str]:
        return list(self._data)


class RedisPlanStore(PlanStore):
    """
    Redis-backed store so a plan survives app restarts.

    Values are stored as JSON strings.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        client: Optional[redis.Redis] = None,
        namespace: str = ""
    ):
        """
        Initialize Redis connection.

        Args:
            url (str): Redis connection URL
            client (Optional[redis.Redis]): Pre-built client, used as is
            namespace (str): Key namespace that clear() is limited to;
                empty flushes the whole database
        """
        self._redis = client or redis.Redis.from_url(url, decode_responses=True)
        self._namespace = namespace

    def get(self, key: str) -> Optional[Any]:
        try:
            value = self._redis.get(key)
        except redis.RedisError as e:
            logger.error(f"Redis read failed for '{key}': {str(e)}")
            raise StoreError(f"Redis read failed for '{key}': {str(e)}")

        if value is None:
            return None

        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    def set(self, key: str, value: Any) -> None:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error(f"Cannot encode value for '{key}': {str(e)}")
            raise StoreError(f"Cannot encode value for '{key}': {str(e)}")

        try:
            self._redis.set(key, encoded)
        except redis.RedisError as e:
            logger.error(f"Redis write failed for '{key}': {str(e)}")
            raise StoreError(f"Redis write failed for '{key}': {str(e)}")

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(key)
        except redis.RedisError as e:
            logger.error(f"Redis delete failed for '{key}': {str(e)}")
            raise StoreError(f"Redis delete failed for '{key}': {str(e)}")

    def clear(self) -> None:
        try:
            if self._namespace:
                for key in self._redis.scan_iter(match=f"{self._namespace}:*"):
                    self._redis.delete(key)
            else:
                self._redis.flushdb()
        except redis.RedisError as e:
            logger.error(f"Redis flush failed: {str(e)}")
            raise StoreError(f"Redis flush failed: {str(e)}")


def grade_calculator_key(course_name: Optional[str]) -> str:
    """Storage key for a course's calculator data ("CPTS 121" -> "cpts_121")."""
    if not course_name or not course_name.strip():
        return "default"
    return "_".join(course_name.strip().lower().split())


class StorageManager:
    """
    Named, namespaced access to everything the planner persists.

    Every helper catches StoreError, logs it and returns a neutral value.
    """

    def __init__(
        self,
        backend: PlanStore,
        namespace: str = "",
        recent_courses_limit: int = 15,
        ucore_cache_max_age: int = 24 * 60 * 60,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize storage manager.

        Args:
            backend (PlanStore): Storage implementation
            namespace (str): Key namespace
            recent_courses_limit (int): Recent course searches to keep
            ucore_cache_max_age (int): UCORE cache lifetime in seconds
            clock (Callable[[], float]): Time source in seconds
        """
        self._backend = backend
        self._namespace = namespace
        self._recent_limit = recent_courses_limit
        self._ucore_max_age = ucore_cache_max_age
        self._clock = clock

    def _make_key(self, key: str) -> str:
        """Generate namespaced storage key."""
        return f"{self._namespace}:{key}" if self._namespace else key

    def _read(self, key: str) -> Optional[Any]:
        return self._backend.get(self._make_key(key))

    def _write(self, key: str, value: Any) -> None:
        self._backend.set(self._make_key(key), value)

    def _remove(self, key: str) -> None:
        self._backend.delete(self._make_key(key))

    # ▸ Degree plan
    def save_degree_plan(self, plan: Union[DegreePlan, Dict[str, Any]]) -> bool:
        """Save the plan under the current key and the legacy key."""
        data = plan_to_dict(plan) if isinstance(plan, DegreePlan) else dict(plan)
        data["lastSaved"] = datetime.now().isoformat()
        try:
            logger.debug(f"Writing degree plan to {STORAGE_KEYS['DEGREE_PLAN']}")
            self._write(STORAGE_KEYS["DEGREE_PLAN"], data)
        except StoreError as e:
            logger.error(f"Error saving degree plan: {str(e)}")
            return False

        try:
            self._write(LEGACY_KEYS["DEGREE_PLAN"], data)
        except StoreError as e:
            logger.warning(f"Legacy degree plan copy not written: {str(e)}")
        return True

    def load_degree_plan(self) -> Optional[DegreePlan]:
        """Load the saved plan, falling back to the legacy key."""
        try:
            data = self._read(STORAGE_KEYS["DEGREE_PLAN"])
            if not data:
                data = self._read(LEGACY_KEYS["DEGREE_PLAN"])
            return parse_degree_plan(data) if data else None
        except (StoreError, ValidationError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Error loading degree plan: {str(e)}")
            return None

    # ▸ Selected degree
    def save_selected_degree(self, degree: Any) -> bool:
        try:
            self._write(STORAGE_KEYS["SELECTED_DEGREE"], degree)
            return True
        except StoreError as e:
            logger.error(f"Error saving selected degree: {str(e)}")
            return False

    def load_selected_degree(self) -> Optional[Any]:
        try:
            return self._read(STORAGE_KEYS["SELECTED_DEGREE"])
        except StoreError as e:
            logger.error(f"Error loading selected degree: {str(e)}")
            return None

    # ▸ Course schedule
    def save_user_courses(self, courses: Iterable[Union[Course, Dict[str, Any]]]) -> bool:
        """Save the course schedule under the current key and the legacy key."""
        data = [course_to_dict(c) if isinstance(c, Course) else c for c in courses or []]
        try:
            self._write(STORAGE_KEYS["USER_COURSES"], data)
        except StoreError as e:
            logger.error(f"Error saving user courses: {str(e)}")
            return False

        try:
            self._write(LEGACY_KEYS["USER_COURSES"], data)
        except StoreError as e:
            logger.warning(f"Legacy course schedule copy not written: {str(e)}")
        return True

    def load_user_courses(self) -> List[Dict[str, Any]]:
        try:
            courses = self._read(STORAGE_KEYS["USER_COURSES"])
            if not courses:
                courses = self._read(LEGACY_KEYS["USER_COURSES"])
            return courses or []
        except StoreError as e:
            logger.error(f"Error loading user courses: {str(e)}")
            return []

    # ▸ Preferences
    def save_preferences(self, preferences: Dict[str, Any]) -> bool:
        try:
            self._write(STORAGE_KEYS["PREFERENCES"], preferences)
            return True
        except StoreError as e:
            logger.error(f"Error saving preferences: {str(e)}")
            return False

    def load_preferences(self) -> Dict[str, Any]:
        try:
            return self._read(STORAGE_KEYS["PREFERENCES"]) or {}
        except StoreError as e:
            logger.error(f"Error loading preferences: {str(e)}")
            return {}

    # ▸ UCORE cache
    def save_ucore_cache(self, cache: Dict[str, Any], year: str) -> bool:
        """Cache UCORE course lists for one catalog year."""
        try:
            self._write(STORAGE_KEYS["UCORE_CACHE"], {
                "cache": cache,
                "year": year,
                "timestamp": self._clock(),
            })
            return True
        except StoreError as e:
            logger.error(f"Error saving UCORE cache: {str(e)}")
            return False

    def load_ucore_cache(self, expected_year: str) -> Optional[Dict[str, Any]]:
        """
        Cached UCORE lists, or None if missing, for another catalog year,
        or older than the cache lifetime (expired entries are removed).
        """
        try:
            data = self._read(STORAGE_KEYS["UCORE_CACHE"])
            if not isinstance(data, dict):
                return None
            if data.get("year") != expected_year:
                return None
            if self._clock() - data.get("timestamp", 0) > self._ucore_max_age:
                logger.info("UCORE cache expired")
                self._remove(STORAGE_KEYS["UCORE_CACHE"])
                return None
            return data.get("cache")
        except StoreError as e:
            logger.error(f"Error loading UCORE cache: {str(e)}")
            return None

    def clear_ucore_cache(self) -> bool:
        try:
            self._remove(STORAGE_KEYS["UCORE_CACHE"])
            return True
        except StoreError as e:
            logger.error(f"Error clearing UCORE cache: {str(e)}")
            return False

    # ▸ Class grade calculator
    def save_grade_calculator_data(self, course_name: Optional[str], data: Dict[str, Any]) -> bool:
        """Save calculator inputs for a course (or "default" without one)."""
        try:
            all_data = self._read(STORAGE_KEYS["GRADE_CALCULATOR"]) or {}
            all_data[grade_calculator_key(course_name)] = {**data, "updatedAt": self._clock()}
            self._write(STORAGE_KEYS["GRADE_CALCULATOR"], all_data)
            return True
        except StoreError as e:
            logger.error(f"Error saving grade calculator data: {str(e)}")
            return False

    def load_grade_calculator_data(self, course_name: Optional[str]) -> Optional[Dict[str, Any]]:
        try:
            all_data = self._read(STORAGE_KEYS["GRADE_CALCULATOR"]) or {}
            return all_data.get(grade_calculator_key(course_name))
        except StoreError as e:
            logger.error(f"Error loading grade calculator data: {str(e)}")
            return None

    def clear_grade_calculator_data(self, course_name: Optional[str] = None) -> bool:
        """Clear one course's calculator data, or all of it without a name."""
        try:
            if not course_name:
                self._remove(STORAGE_KEYS["GRADE_CALCULATOR"])
                return True
            all_data = self._read(STORAGE_KEYS["GRADE_CALCULATOR"])
            if all_data:
                all_data.pop(grade_calculator_key(course_name), None)
                self._write(STORAGE_KEYS["GRADE_CALCULATOR"], all_data)
            return True
        except StoreError as e:
            logger.error(f"Error clearing grade calculator data: {str(e)}")
            return False

    # ▸ Recent course searches
    def save_recent_course(self, course: Dict[str, Any]) -> bool:
        """Move a course to the front of the recent list, keeping the newest few."""
        try:
            recent = self._read(STORAGE_KEYS["RECENT_COURSES"]) or []
            recent = [
                c for c in recent
                if c.get("prefix") != course.get("prefix") or c.get("number") != course.get("number")
            ]
            recent.insert(0, {**course, "addedAt": self._clock()})
            self._write(STORAGE_KEYS["RECENT_COURSES"], recent[:self._recent_limit])
            return True
        except StoreError as e:
            logger.error(f"Error saving recent course: {str(e)}")
            return False

    def load_recent_courses(self) -> List[Dict[str, Any]]:
        try:
            return self._read(STORAGE_KEYS["RECENT_COURSES"]) or []
        except StoreError as e:
            logger.error(f"Error loading recent courses: {str(e)}")
            return []

    def clear_recent_courses(self) -> bool:
        try:
            self._remove(STORAGE_KEYS["RECENT_COURSES"])
            return True
        except StoreError as e:
            logger.error(f"Error clearing recent courses: {str(e)}")
            return False

    # ▸ Theme
    def save_theme(self, theme: str) -> bool:
        try:
            self._write(STORAGE_KEYS["THEME"], theme)
            return True
        except StoreError as e:
            logger.error(f"Error saving theme: {str(e)}")
            return False

    def load_theme(self) -> str:
        try:
            return self._read(STORAGE_KEYS["THEME"]) or DEFAULT_THEME
        except StoreError as e:
            logger.error(f"Error loading theme: {str(e)}")
            return DEFAULT_THEME

    def clear_all_data(self) -> bool:
        """Remove every named key, legacy copies included."""
        try:
            for key in [*STORAGE_KEYS.values(), *LEGACY_KEYS.values()]:
                self._remove(key)
            logger.info("All planner data cleared")
            return True
        except StoreError as e:
            logger.error(f"Error clearing data: {str(e)}")
            return False


def create_store(store_config: Optional[StoreConfig] = None) -> StorageManager:
    """Convenience factory for StorageManager

    Args:
        store_config: Storage settings; defaults to the global configuration

    Returns:
        StorageManager over the configured backend
    """
    store_config = store_config or config.store
    if store_config.backend == "redis":
        backend: PlanStore = RedisPlanStore(
            store_config.redis_url, namespace=store_config.namespace
        )
    else:
        backend = MemoryPlanStore()

    logger.info(f"Using {store_config.backend} plan store")
    return StorageManager(
        backend,
        namespace=store_config.namespace,
        recent_courses_limit=store_config.recent_courses_limit,
        ucore_cache_max_age=store_config.ucore_cache_max_age,
    )
