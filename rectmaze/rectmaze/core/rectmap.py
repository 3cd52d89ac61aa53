import logging
import time
from collections import deque
from typing import Deque, Dict, Optional, Set, Tuple

import numpy as np

from .graph import DijkstraGraph, Edge, EdgeSetGraph, NodeID
from .grid import CLEAR, WALL, Grid
from .map import Map
from .rectangle import Rectangle
from .util import STEP_X, STEP_Y, THRESHOLD, get_xy, vec_add, vec_sub

logger = logging.getLogger(__name__)

SeedQueue = Deque[Tuple[int, int]]


def grow_rect(grid: Grid, seed: Tuple[int, int]) -> Rectangle:
    """
    Grows a rectangle of clear cells around `seed`.

    The order is fixed: extend left, then right, using only the seed's row; then up, then down,
    absorbing a row only if every cell across the current width is clear. The width is therefore
    settled before the height starts growing, and the result is maximal for this order rather
    than the largest rectangle containing the seed.

    Parameters:
    - grid (Grid): the grid being decomposed.
    - seed (tuple): a clear cell (x, y).
    Returns:
    - Rectangle: the grown rectangle, containing the seed.
    """
    sx, sy = seed
    xmin, xmax = sx, sx + 1
    ymin, ymax = sy, sy + 1

    while grid.is_clear((xmin - 1, sy)):
        xmin -= 1
    while grid.is_clear((xmax, sy)):
        xmax += 1

    while ymin - 1 >= 0 and all(grid.get((x, ymin - 1)) == CLEAR for x in range(xmin, xmax)):
        ymin -= 1
    while ymax < grid.height and all(grid.get((x, ymax)) == CLEAR for x in range(xmin, xmax)):
        ymax += 1

    return Rectangle.new_unchecked((xmin, ymin), (xmax, ymax))


def scan_edge(grid: Grid, queue: SeedQueue, edges: Set[Edge], id: NodeID,
              start: Tuple[int, int], step: Tuple[int, int], count: int) -> None:
    """
    Walks `count` cells from `start` along `step`, splitting them into runs of equal state.
    When a run ends, a covered run links `id` to its owner and a clear run queues its last cell
    as a new seed. The trailing run is finalised after the walk as well.

    Parameters:
    - grid (Grid): the grid being decomposed.
    - queue (deque): pending seeds, appended to.
    - edges (set): discovered edges, added to.
    - id (int): node id of the rectangle whose boundary is scanned.
    - start (tuple): first cell of the strip.
    - step (tuple): unit step along the strip.
    - count (int): strip length.
    """
    def finish_run(square: int, pos: Tuple[int, int]) -> None:
        if square > 0:
            edges.add(Edge.new(id, square))
        elif square == CLEAR:
            queue.append(vec_sub(pos, step))

    pos = start
    prev_square = WALL

    for _ in range(count):
        if not grid.in_bounds(pos):
            break

        square = grid.get(pos)
        if square != prev_square:
            finish_run(prev_square, pos)
            prev_square = square

        pos = vec_add(pos, step)

    finish_run(prev_square, pos)


def scan_rect_boundary(grid: Grid, queue: SeedQueue, edges: Set[Edge], id: NodeID, rect: Rectangle) -> None:
    """
    Scans the one-cell strips above, below, left of and right of a claimed rectangle.
    """
    (xmin, ymin), (xmax, ymax) = rect.mins, rect.maxs
    scan_edge(grid, queue, edges, id, (xmin, ymin - 1), STEP_X, rect.width())
    scan_edge(grid, queue, edges, id, (xmin, ymax), STEP_X, rect.width())
    scan_edge(grid, queue, edges, id, (xmin - 1, ymin), STEP_Y, rect.height())
    scan_edge(grid, queue, edges, id, (xmax, ymin), STEP_Y, rect.height())


def extract_graph(grid: Grid, start: Tuple[int, int], goal: Tuple[int, int]) -> Optional[EdgeSetGraph]:
    """
    Decomposes the clear space reachable from `start` into disjoint rectangles and links
    rectangles that share a boundary.

    Seeds are processed breadth first. Each seed that is still clear grows a rectangle, which is
    claimed on the grid under the next node id (starting at 1); its boundary scan then records
    edges to already claimed neighbours and queues seeds in the clear space around it.

    Parameters:
    - grid (Grid): the maze grid. Claimed cells are written into it.
    - start (tuple): start cell (x, y); must be clear.
    - goal (tuple): goal cell (x, y); must be clear.
    Returns:
    - EdgeSetGraph: nodes are Rectangles keyed by node id, or None if the goal cannot be reached
      from the start.
    """
    start, goal = get_xy(start), get_xy(goal)
    for name, pos in (("start", start), ("goal", goal)):
        if not grid.in_bounds(pos):
            raise ValueError(f"{name} {pos} is outside the {grid.width}x{grid.height} grid")
        if grid.get(pos) != CLEAR:
            raise ValueError(f"{name} {pos} is not a clear cell")

    nodes: Dict[NodeID, Rectangle] = {}
    edges: Set[Edge] = set()

    queue: SeedQueue = deque([start])

    id = 1
    start_id = None
    goal_id = None

    while queue:
        seed = queue.popleft()
        if not grid.is_clear(seed):
            continue

        rect = grow_rect(grid, seed)
        grid.claim(rect, id)
        scan_rect_boundary(grid, queue, edges, id, rect)

        nodes[id] = rect

        if rect.contains(start):
            if start_id is not None:
                raise RuntimeError(f"Start {start} claimed by both node {start_id} and node {id}")
            start_id = id

        if rect.contains(goal):
            if goal_id is not None:
                raise RuntimeError(f"Goal {goal} claimed by both node {goal_id} and node {id}")
            goal_id = id

        id += 1

    logger.debug("Extracted %d rectangles and %d edges", len(nodes), len(edges))

    if goal_id is None:
        logger.debug("Goal %s is not connected to start %s", goal, start)
        return None

    return EdgeSetGraph(nodes, start_id, goal_id, edges)


def default_terminals(grid: Grid) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """
    Picks start and goal cells on the maze border: the start is the first clear cell of the top
    row, the goal the last clear cell of the right column, or of the bottom row if the right
    column is all wall.

    Parameters:
    - grid (Grid): the maze grid.
    Returns:
    - tuple: (start, goal) cell coordinates.
    """
    top = [(x, 0) for x in range(grid.width)]
    right = [(grid.width - 1, y) for y in range(grid.height)]
    bottom = [(x, grid.height - 1) for x in range(grid.width)]

    start = next((pos for pos in top if grid.get(pos) == CLEAR), None)
    if start is None:
        raise ValueError("No clear cell on the top row to start from")

    goal = next((pos for pos in reversed(right) if grid.get(pos) == CLEAR and pos != start), None)
    if goal is None:
        goal = next((pos for pos in reversed(bottom) if grid.get(pos) == CLEAR and pos != start), None)
    if goal is None:
        raise ValueError("No clear cell on the right column or bottom row to end at")

    return start, goal


class RectMap(Map):
    """
    A Map subclass that solves the maze through a rectangle decomposition.

    It decomposes the free space into maximal axis-aligned rectangles, prunes dead ends from the
    resulting graph and runs a shortest-path search from the start rectangle to the goal one.
    """

    def __init__(self, filename: str = None, threshold: int = THRESHOLD, debug: (bool, int) = False,
                 image: np.ndarray = None, logger: logging.Logger = None) -> None:
        """
        Initialize a RectMap.

        Parameters:
          filename (str): path to a black-and-white maze image.
          threshold (int): grayscale threshold for binarization in the base Map constructor.
          debug (bool): report stage timings at INFO level instead of DEBUG.
          image (np.ndarray): alternative image input (grayscale) instead of filename.
          logger (logging.Logger): logger for progress messages (default: this module's logger).
        """
        if not isinstance(debug, (bool, int)):
            raise ValueError("debug must be a boolean or integer")
        if filename is None and image is None:
            raise ValueError("Either 'filename' or 'image' must be provided.")

        self.debug = bool(debug)
        self.logger = logger or logging.getLogger(__name__)

        super().__init__(filename=filename, threshold=threshold, image=image)

        self.rectangles: Optional[EdgeSetGraph] = None  # full decomposition
        self.pruned: Optional[EdgeSetGraph] = None  # decomposition without dead ends
        self.graph: Optional[DijkstraGraph] = None  # distances from the start rectangle
        self.path: Optional[list] = None  # node ids from start to goal

    def build_grid(self) -> Grid:
        return Grid.from_image(self.grid_image)

    def process(self, start: Tuple[int, int] = None, goal: Tuple[int, int] = None) -> Optional[DijkstraGraph]:
        """
        Runs the full pipeline: grid, decomposition, pruning, shortest path.

        Parameters:
        - start: start cell (x, y); picked on the border when omitted.
        - goal: goal cell (x, y); picked on the border when omitted.
        Returns:
        - DijkstraGraph: the solved graph, or None when the goal is not reachable from the start.
        """
        level = logging.INFO if self.debug else logging.DEBUG

        t0 = time.perf_counter()
        grid = self.build_grid()
        if start is None or goal is None:
            default_start, default_goal = default_terminals(grid)
            start = default_start if start is None else start
            goal = default_goal if goal is None else goal
        self.logger.info("Solving from %s to %s", tuple(start), tuple(goal))

        self.logger.info("Building graph...")
        t1 = time.perf_counter()
        self.rectangles = extract_graph(grid, start, goal)
        del grid
        if self.rectangles is None:
            self.logger.warning("Goal is not connected to start.")
            return None

        self.logger.info("Pruning graph...")
        t2 = time.perf_counter()
        self.pruned = self.rectangles.prune()

        self.logger.info("Finding path...")
        t3 = time.perf_counter()
        self.graph = self.pruned.to_adjacency_graph().into_dijkstra()
        self.path = self.graph.path()
        t4 = time.perf_counter()

        if self.path is None:
            self.logger.warning("Goal is not reachable from start.")
        else:
            self.logger.info("Solution length: %d", self.graph.goal_distance())

        self.logger.log(level, "Processing completed in %.3f ms:", (t4 - t0) * 1000)
        self.logger.log(level, "Grid construction: %.3f ms.", (t1 - t0) * 1000)
        self.logger.log(level, "Rectangle extraction: %.3f ms (%d rectangles, %d edges).",
                        (t2 - t1) * 1000, len(self.rectangles), len(self.rectangles.edges))
        self.logger.log(level, "Dead-end pruning: %.3f ms (%d rectangles left).",
                        (t3 - t2) * 1000, len(self.pruned))
        self.logger.log(level, "Shortest path: %.3f ms.", (t4 - t3) * 1000)

        return self.graph if self.path is not None else None
