"""
Tests for the ancestor/descendant resolver.

Covers child index construction, transitive ancestor and descendant lookups,
unknown ids, unloaded parents and termination on cyclic data.
"""

from uuid import uuid4

from tasktree.models import Task
from tasktree.services.hierarchy import (
    ancestor_depths,
    build_child_index,
    completion_progress,
    effective_roots,
    get_ancestors,
    get_children,
    get_descendants,
    get_parents,
)


class TestChildIndex:
    """Tests for build_child_index and direct relations."""

    def test_index_maps_parents_to_children(self, shared_child_hierarchy):
        """Test each parent lists its children in collection order."""
        h = shared_child_hierarchy
        tasks = list(h.values())

        index = build_child_index(tasks)

        assert index[h["p1"].id] == [h["c"].id]
        assert index[h["p2"].id] == [h["c"].id]
        assert index[h["c"].id] == [h["g"].id]
        assert h["g"].id not in index

    def test_get_children_and_parents(self, shared_child_hierarchy):
        """Test direct children and loaded parents."""
        h = shared_child_hierarchy
        tasks = list(h.values())

        assert get_children(h["p1"].id, tasks) == [h["c"]]
        assert get_parents(h["c"].id, tasks) == [h["p1"], h["p2"]]
        assert get_parents(h["p1"].id, tasks) == []

    def test_get_parents_skips_unloaded(self, make_task):
        """Test parents that are not loaded are left out."""
        loaded = make_task("Loaded")
        child = make_task("Child", parents=[uuid4(), loaded])

        assert get_parents(child.id, [loaded, child]) == [loaded]


class TestDescendants:
    """Tests for get_descendants."""

    def test_transitive(self, chain_hierarchy):
        """Test descendants include grandchildren but not the start."""
        h = chain_hierarchy
        tasks = list(h.values())

        assert get_descendants(h["root"].id, tasks) == {h["mid"].id, h["leaf"].id}
        assert get_descendants(h["leaf"].id, tasks) == set()

    def test_shared_child_counted_once(self, make_task):
        """Test a diamond yields each descendant once."""
        root = make_task("Root")
        a = make_task("A", parents=[root])
        b = make_task("B", parents=[root])
        bottom = make_task("Bottom", parents=[a, b])

        assert get_descendants(root.id, [root, a, b, bottom]) == {a.id, b.id, bottom.id}

    def test_unknown_id(self, chain_hierarchy):
        """Test an unknown id has no descendants."""
        assert get_descendants(uuid4(), list(chain_hierarchy.values())) == set()

    def test_cycle_terminates(self):
        """Test cyclic data terminates and reports the start only via the cycle."""
        a_id, b_id = uuid4(), uuid4()
        a = Task(id=a_id, title="A", parent_ids=[b_id])
        b = Task(id=b_id, title="B", parent_ids=[a_id])

        assert get_descendants(a_id, [a, b]) == {a_id, b_id}


class TestAncestors:
    """Tests for get_ancestors and ancestor_depths."""

    def test_transitive(self, chain_hierarchy):
        """Test ancestors follow parent links all the way up."""
        h = chain_hierarchy
        tasks = list(h.values())

        assert get_ancestors(h["leaf"].id, tasks) == {h["mid"].id, h["root"].id}
        assert get_ancestors(h["root"].id, tasks) == set()

    def test_includes_unloaded_parent(self, make_task):
        """Test a referenced but unloaded parent counts as an ancestor."""
        missing = uuid4()
        child = make_task("Child", parents=[missing])

        assert get_ancestors(child.id, [child]) == {missing}

    def test_unknown_id(self, chain_hierarchy):
        """Test an unknown id has no ancestors."""
        assert get_ancestors(uuid4(), list(chain_hierarchy.values())) == set()

    def test_depths_use_shortest_path(self, make_task):
        """Test an ancestor reachable by two paths gets the shorter distance."""
        root = make_task("Root")
        mid = make_task("Mid", parents=[root])
        leaf = make_task("Leaf", parents=[mid, root])

        depths = ancestor_depths(leaf.id, [root, mid, leaf])

        assert depths == {mid.id: 1, root.id: 1}

    def test_cycle_terminates(self):
        """Test cyclic data terminates."""
        a_id, b_id = uuid4(), uuid4()
        a = Task(id=a_id, title="A", parent_ids=[b_id])
        b = Task(id=b_id, title="B", parent_ids=[a_id])

        assert get_ancestors(a_id, [a, b]) == {a_id, b_id}


class TestDisplayHelpers:
    """Tests for effective_roots and completion_progress."""

    def test_effective_roots(self, chain_hierarchy, make_task):
        """Test tasks whose parents are all absent are shown as roots."""
        h = chain_hierarchy
        orphan = make_task("Orphan", parents=[uuid4()])

        roots = effective_roots([h["mid"], h["leaf"], orphan])

        assert roots == [h["mid"], orphan]

    def test_completion_progress(self, make_task):
        """Test the percentage of completed direct children."""
        parent = make_task("Parent")
        done = make_task("Done", parents=[parent], completed=True)
        todo = make_task("Todo", parents=[parent])
        tasks = [parent, done, todo]

        assert completion_progress(parent.id, tasks) == 50
        assert completion_progress(done.id, tasks) is None
