"""
Dependency Graph
Directed graph over work orders with layered (Kahn) topological ordering.

Each work order gets a dense integer index at build time; edges and in-degree
counts live in flat lists indexed by it, with a side table from id to index.
Edges point parent -> child: a child becomes ready the moment its last
parent has been emitted.
"""

from collections import deque
from typing import Dict, List, Sequence

from algorithms.errors import CycleDetectedError, DuplicateWorkOrderError, UnknownDependencyError
from algorithms.models import WorkOrder


class DependencyGraph:
    """
    Build once from the run's work orders, then call topological_order().

    Raises (from the constructor):
        DuplicateWorkOrderError: two orders share an id
        UnknownDependencyError: an order depends on an id not in the input
    """

    def __init__(self, work_orders: Sequence[WorkOrder]):
        self.ids: List[str] = []
        self.index_of: Dict[str, int] = {}
        self.children: List[List[int]] = []
        self.in_degree: List[int] = []

        self._build(work_orders)

    def _build(self, work_orders: Sequence[WorkOrder]):
        for wo in work_orders:
            if wo.id in self.index_of:
                raise DuplicateWorkOrderError(wo.id)
            self.index_of[wo.id] = len(self.ids)
            self.ids.append(wo.id)
            self.children.append([])
            self.in_degree.append(0)

        for wo in work_orders:
            child = self.index_of[wo.id]
            for dep_id in wo.depends_on:
                parent = self.index_of.get(dep_id)
                if parent is None:
                    raise UnknownDependencyError(wo.id, dep_id)
                self.children[parent].append(child)
                self.in_degree[child] += 1

    def __len__(self) -> int:
        return len(self.ids)

    def parents_of(self, work_order_id: str) -> List[str]:
        idx = self.index_of[work_order_id]
        return [self.ids[p] for p, kids in enumerate(self.children) if idx in kids]

    def topological_order(self) -> List[str]:
        """
        Return work order ids so that every parent precedes its children.

        Nodes that become ready at the same time keep their input order. The
        graph itself is not consumed, so the call can be repeated.

        Raises:
            CycleDetectedError: if fewer than all nodes could be emitted
        """
        remaining = list(self.in_degree)
        queue = deque(i for i, degree in enumerate(remaining) if degree == 0)
        order: List[int] = []

        while queue:
            current = queue.popleft()
            order.append(current)
            for child in self.children[current]:
                remaining[child] -= 1
                if remaining[child] == 0:
                    queue.append(child)

        if len(order) != len(self.ids):
            emitted = set(order)
            raise CycleDetectedError([self.ids[i] for i in range(len(self.ids)) if i not in emitted])

        return [self.ids[i] for i in order]


def topological_order(work_orders: Sequence[WorkOrder]) -> List[str]:
    """Convenience wrapper: build the graph and return its processing order."""
    return DependencyGraph(work_orders).topological_order()
