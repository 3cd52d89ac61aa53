"""
Graph views over the rectangles extracted from a maze.

The pipeline only ever moves forward through three representations:

    EdgeSetGraph  --to_adjacency_graph()-->  AdjacencyGraph  --into_dijkstra()-->  DijkstraGraph

Each conversion builds a new object and leaves its input untouched. All three expose the same
lookup surface (get_node, nodes, start, goal) without sharing a base class.
"""
import logging
import math
from typing import Any, Dict, List, NamedTuple, Optional, Set

import networkx as nx

from .priority_queue import IndexedPriorityQueue

logger = logging.getLogger(__name__)

NodeID = int

# Distance of a node the search never reached.
INFINITY = math.inf


class Edge(NamedTuple):
    """
    Undirected edge stored canonically as (min, max) so (a, b) and (b, a) compare equal.
    """
    min: NodeID
    max: NodeID

    @classmethod
    def new(cls, a: NodeID, b: NodeID) -> "Edge":
        if a == b:
            raise ValueError(f"Self-edge on node {a} is not allowed")
        return cls(min(a, b), max(a, b))


def _check_terminals(nodes: Dict[NodeID, Any], start: NodeID, goal: NodeID) -> None:
    if start not in nodes:
        raise ValueError(f"Start node {start} is not in the graph")
    if goal not in nodes:
        raise ValueError(f"Goal node {goal} is not in the graph")


class EdgeSetGraph:
    """
    Nodes with payloads, designated start and goal nodes, and a set of undirected edges.
    """

    def __init__(self, nodes: Dict[NodeID, Any], start: NodeID, goal: NodeID, edges: Set[Edge]) -> None:
        """
        Parameters:
        - nodes: Maps node id to payload (a Rectangle for extracted mazes).
        - start: Id of the start node.
        - goal: Id of the goal node.
        - edges: Set of canonical edges between existing nodes.
        """
        _check_terminals(nodes, start, goal)
        for edge in edges:
            if edge.min not in nodes or edge.max not in nodes:
                raise ValueError(f"{edge} references a node that is not in the graph")
        self._nodes = dict(nodes)
        self._start = start
        self._goal = goal
        self.edges = set(edges)

    def get_node(self, id: NodeID) -> Any:
        return self._nodes[id]

    def nodes(self) -> Dict[NodeID, Any]:
        return self._nodes

    def start(self) -> NodeID:
        return self._start

    def goal(self) -> NodeID:
        return self._goal

    def degrees(self) -> Dict[NodeID, int]:
        """
        Returns the number of incident edges of every node, zero included.
        """
        degrees = dict.fromkeys(self._nodes, 0)
        for edge in self.edges:
            degrees[edge.min] += 1
            degrees[edge.max] += 1
        return degrees

    def to_adjacency_graph(self) -> "AdjacencyGraph":
        """
        Converts the edge set into symmetric per-node neighbour sets. Nodes without
        edges get an empty set.
        """
        adjs = {id: set() for id in self._nodes}
        for edge in self.edges:
            adjs[edge.min].add(edge.max)
            adjs[edge.max].add(edge.min)
        return AdjacencyGraph(self._nodes, self._start, self._goal, adjs)

    def prune(self) -> "EdgeSetGraph":
        """
        Repeatedly removes dead ends (nodes with fewer than two edges, other than start and goal)
        until none are left. Removing a dead end can turn its neighbour into one, so this runs to a
        fixed point rather than a single pass.

        Returns:
        - EdgeSetGraph: a new graph; start and goal always survive.
        """
        nodes = dict(self._nodes)
        edges = set(self.edges)
        terminals = {self._start, self._goal}

        rounds = 0
        while True:
            degrees = dict.fromkeys(nodes, 0)
            for edge in edges:
                degrees[edge.min] += 1
                degrees[edge.max] += 1

            dead_ends = {id for id, degree in degrees.items() if degree < 2 and id not in terminals}
            if not dead_ends:
                break

            edges = {edge for edge in edges if edge.min not in dead_ends and edge.max not in dead_ends}
            nodes = {id: data for id, data in nodes.items() if id not in dead_ends}
            rounds += 1

        logger.debug("Pruned %d of %d nodes in %d rounds", len(self._nodes) - len(nodes), len(self._nodes), rounds)
        return EdgeSetGraph(nodes, self._start, self._goal, edges)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return (f"EdgeSetGraph(nodes={len(self._nodes)}, edges={len(self.edges)}, "
                f"start={self._start}, goal={self._goal})")


class AdjacencyGraph:
    """
    Nodes with payloads, designated start and goal nodes, and symmetric neighbour sets.
    """

    def __init__(self, nodes: Dict[NodeID, Any], start: NodeID, goal: NodeID,
                 adjs: Dict[NodeID, Set[NodeID]]) -> None:
        _check_terminals(nodes, start, goal)
        self._nodes = dict(nodes)
        self._start = start
        self._goal = goal
        self.adjs = {id: set(adjs.get(id, ())) for id in self._nodes}
        for u, neighbors in self.adjs.items():
            for v in neighbors:
                if v not in self.adjs or u not in self.adjs[v]:
                    raise ValueError(f"Adjacency between {u} and {v} is not symmetric")

    def get_node(self, id: NodeID) -> Any:
        return self._nodes[id]

    def nodes(self) -> Dict[NodeID, Any]:
        return self._nodes

    def start(self) -> NodeID:
        return self._start

    def goal(self) -> NodeID:
        return self._goal

    def neighbors(self, id: NodeID) -> Set[NodeID]:
        return self.adjs[id]

    def to_networkx(self) -> nx.Graph:
        """
        Exports the graph as a networkx.Graph. Payloads are stored under the node attribute
        'rect', terminals under the graph attributes 'start' and 'goal'.
        """
        G = nx.Graph(start=self._start, goal=self._goal)
        for id, data in self._nodes.items():
            G.add_node(id, rect=data)
        for u, neighbors in self.adjs.items():
            G.add_edges_from((u, v) for v in neighbors if u < v)
        return G

    def into_dijkstra(self) -> "DijkstraGraph":
        """
        Computes the shortest distance from start to every node with unit edge weights.

        Every node is queued up front, the start at distance 0 and the rest at INFINITY. Popping
        a node whose distance is still INFINITY means the remaining nodes are unreachable from
        start, so the search stops there instead of relaxing out of an unknown distance.

        Returns:
        - DijkstraGraph: distances per node plus the predecessor of every reached node.
        """
        dists: Dict[NodeID, float] = {id: INFINITY for id in self._nodes}
        dists[self._start] = 0
        paths: Dict[NodeID, NodeID] = {}

        queue = IndexedPriorityQueue()
        for id, dist in dists.items():
            queue.push(id, dist)

        while queue:
            u, dist_u = queue.pop()
            if dist_u == INFINITY:
                break

            for v in self.adjs[u]:
                new_dist = dist_u + 1
                if new_dist < dists[v]:
                    dists[v] = new_dist
                    paths[v] = u
                    queue.change_priority(v, new_dist)

        reached = sum(1 for dist in dists.values() if dist != INFINITY)
        logger.debug("Dijkstra reached %d of %d nodes", reached, len(dists))

        nodes = {id: (data, dists[id]) for id, data in self._nodes.items()}
        return DijkstraGraph(AdjacencyGraph(nodes, self._start, self._goal, self.adjs), paths)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"AdjacencyGraph(nodes={len(self._nodes)}, start={self._start}, goal={self._goal})"


class DijkstraGraph:
    """
    An adjacency graph whose payloads are (data, distance from start), plus the predecessor of
    every node the search reached.
    """

    def __init__(self, inner: AdjacencyGraph, paths: Dict[NodeID, NodeID]) -> None:
        self.inner = inner
        self.paths = dict(paths)

    def get_node(self, id: NodeID) -> Any:
        return self.inner.get_node(id)[0]

    def nodes(self) -> Dict[NodeID, Any]:
        return {id: data for id, (data, _) in self.inner.nodes().items()}

    def start(self) -> NodeID:
        return self.inner.start()

    def goal(self) -> NodeID:
        return self.inner.goal()

    def neighbors(self, id: NodeID) -> Set[NodeID]:
        return self.inner.neighbors(id)

    def distance(self, id: NodeID) -> float:
        return self.inner.get_node(id)[1]

    def goal_distance(self) -> float:
        return self.distance(self.goal())

    def is_goal_reachable(self) -> bool:
        return self.goal_distance() != INFINITY

    def predecessor(self, id: NodeID) -> Optional[NodeID]:
        """
        Returns the node preceding `id` on its shortest path, or None for the start node and for
        nodes the search never reached.
        """
        return self.paths.get(id)

    def path(self) -> Optional[List[NodeID]]:
        """
        Reconstructs the shortest path by following predecessors back from the goal.

        Returns:
        - List[NodeID]: node ids from start to goal, or None if the goal is unreachable.
        """
        if not self.is_goal_reachable():
            return None
        path = [self.goal()]
        while path[-1] != self.start():
            pred = self.predecessor(path[-1])
            if pred is None:
                raise RuntimeError(f"Predecessor chain from goal broke at node {path[-1]}")
            path.append(pred)
        path.reverse()
        return path

    def __len__(self) -> int:
        return len(self.inner)

    def __repr__(self) -> str:
        return (f"DijkstraGraph(nodes={len(self.inner)}, start={self.start()}, goal={self.goal()}, "
                f"goal_distance={self.goal_distance()})")
