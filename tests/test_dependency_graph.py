"""Tests for dependency ordering."""

import itertools
import pytest

from algorithms.dependency_graph import DependencyGraph, topological_order
from algorithms.errors import CycleDetectedError, DuplicateWorkOrderError, UnknownDependencyError
from conftest import MONDAY


class TestTopologicalOrder:

    def test_parent_before_child(self, make_work_order):
        wos = [
            make_work_order('wo2', MONDAY, depends_on=['wo1']),
            make_work_order('wo1', MONDAY),
        ]
        assert topological_order(wos) == ['wo1', 'wo2']

    def test_every_edge_respected_for_any_input_order(self, make_work_order):
        base = [
            make_work_order('a', MONDAY),
            make_work_order('b', MONDAY, depends_on=['a']),
            make_work_order('c', MONDAY, depends_on=['a']),
            make_work_order('d', MONDAY, depends_on=['b', 'c']),
        ]
        for perm in itertools.permutations(base):
            order = topological_order(list(perm))
            position = {wo_id: i for i, wo_id in enumerate(order)}
            assert sorted(order) == ['a', 'b', 'c', 'd']
            for wo in perm:
                for dep in wo.depends_on:
                    assert position[dep] < position[wo.id]

    def test_independent_orders_keep_input_order(self, make_work_order):
        wos = [make_work_order(wo_id, MONDAY) for wo_id in ('z', 'm', 'a')]
        assert topological_order(wos) == ['z', 'm', 'a']

    def test_ready_children_keep_input_order(self, make_work_order):
        wos = [
            make_work_order('root', MONDAY),
            make_work_order('late', MONDAY, depends_on=['root']),
            make_work_order('early', MONDAY, depends_on=['root']),
        ]
        assert topological_order(wos) == ['root', 'late', 'early']

    def test_empty_input(self):
        assert topological_order([]) == []

    def test_duplicate_dependency_counted_once(self, make_work_order):
        wos = [
            make_work_order('wo1', MONDAY),
            make_work_order('wo2', MONDAY, depends_on=['wo1', 'wo1']),
        ]
        assert topological_order(wos) == ['wo1', 'wo2']

    def test_repeatable(self, make_work_order):
        graph = DependencyGraph([
            make_work_order('wo1', MONDAY),
            make_work_order('wo2', MONDAY, depends_on=['wo1']),
        ])
        assert graph.topological_order() == graph.topological_order() == ['wo1', 'wo2']

    def test_parents_of(self, make_work_order):
        graph = DependencyGraph([
            make_work_order('a', MONDAY),
            make_work_order('b', MONDAY),
            make_work_order('c', MONDAY, depends_on=['a', 'b']),
        ])
        assert len(graph) == 3
        assert graph.parents_of('c') == ['a', 'b']
        assert graph.parents_of('a') == []


class TestStructuralErrors:

    def test_self_dependency_is_cycle(self, make_work_order):
        with pytest.raises(CycleDetectedError) as exc_info:
            topological_order([make_work_order('wo1', MONDAY, depends_on=['wo1'])])
        assert exc_info.value.work_order_ids == ['wo1']

    def test_cycle_lists_unresolved_orders(self, make_work_order):
        wos = [
            make_work_order('free', MONDAY),
            make_work_order('a', MONDAY, depends_on=['c']),
            make_work_order('b', MONDAY, depends_on=['a']),
            make_work_order('c', MONDAY, depends_on=['b']),
        ]
        with pytest.raises(CycleDetectedError) as exc_info:
            topological_order(wos)
        assert exc_info.value.work_order_ids == ['a', 'b', 'c']
        assert 'Cycle detected' in str(exc_info.value)

    def test_unknown_dependency(self, make_work_order):
        with pytest.raises(UnknownDependencyError) as exc_info:
            topological_order([make_work_order('wo1', MONDAY, depends_on=['ghost'])])
        assert exc_info.value.dependency_id == 'ghost'
        assert str(exc_info.value) == 'Dependency not found: WorkOrder ghost (required by wo1)'

    def test_duplicate_ids(self, make_work_order):
        with pytest.raises(DuplicateWorkOrderError):
            topological_order([make_work_order('wo1', MONDAY), make_work_order('wo1', MONDAY)])
