"""
Pytest configuration and fixtures for TaskTree tests.

Provides database fixtures, task factories, and the small hierarchies the
engine tests share.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional
from uuid import UUID

import pytest
import pytest_asyncio

from tasktree.database import DatabaseManager
from tasktree.models import Priority, Task

BASE_TIME = datetime(2025, 1, 14, 10, 0, 0)


@pytest_asyncio.fixture
async def db_manager():
    """
    Create an in-memory SQLite database for testing.

    Yields:
        DatabaseManager instance with in-memory database
    """
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await manager.initialize()

    yield manager

    await manager.close()


@pytest_asyncio.fixture
async def db_session(db_manager):
    """
    Provide a database session for tests.

    Yields:
        AsyncSession for database operations
    """
    async with db_manager.get_session() as session:
        yield session


@pytest.fixture
def make_task():
    """
    Factory for in-memory Task instances.

    Each call gets a creation time one minute after the previous one, so
    tasks created later in a test are newer.

    Example:
        def test_something(make_task):
            root = make_task("Root")
            child = make_task("Child", parents=[root])
    """
    counter = {"n": 0}

    def _make(
        title: str,
        parents: Iterable = (),
        completed: bool = False,
        priority: Optional[Priority] = None,
        **fields,
    ) -> Task:
        counter["n"] += 1
        parent_ids = [p.id if isinstance(p, Task) else UUID(str(p)) for p in parents]
        fields.setdefault("created_at", BASE_TIME + timedelta(minutes=counter["n"]))
        return Task(
            title=title,
            parent_ids=parent_ids,
            completed=completed,
            priority=priority,
            **fields,
        )

    return _make


@pytest.fixture
def chain_hierarchy(make_task):
    """
    Root -> Mid -> Leaf, all incomplete.

    Returns:
        Dictionary with the three tasks
    """
    root = make_task("Root")
    mid = make_task("Mid", parents=[root])
    leaf = make_task("Leaf", parents=[mid])
    return {"root": root, "mid": mid, "leaf": leaf}


@pytest.fixture
def shared_child_hierarchy(make_task):
    """
    Two roots P1 and P2 sharing child C, which has its own child G.

        P1   P2
          \\ /
           C
           |
           G

    Returns:
        Dictionary with the four tasks
    """
    p1 = make_task("P1")
    p2 = make_task("P2")
    c = make_task("C", parents=[p1, p2])
    g = make_task("G", parents=[c])
    return {"p1": p1, "p2": p2, "c": c, "g": g}
