import itertools
import logging

import networkx as nx
import numpy as np
import pytest

from conftest import BRANCHED, DISCONNECTED, OPEN_ROOM, STAIRCASE, parse_maze
from rectmaze.core.graph import Edge
from rectmaze.core.grid import CLEAR, WALL, Grid
from rectmaze.core.rectangle import Rectangle
from rectmaze.core.rectmap import RectMap, default_terminals, extract_graph, grow_rect


def reachable_cells(image, start):
    G = nx.grid_2d_graph(image.shape[1], image.shape[0])
    G.remove_nodes_from([(x, y) for y, x in zip(*np.nonzero(image != 255))])
    return nx.node_connected_component(G, start)


def touching(a, b):
    """True if two disjoint rectangles share a stretch of border (corners do not count)."""
    grown_x = Rectangle.new_unchecked((a.mins[0] - 1, a.mins[1]), (a.maxs[0] + 1, a.maxs[1]))
    grown_y = Rectangle.new_unchecked((a.mins[0], a.mins[1] - 1), (a.maxs[0], a.maxs[1] + 1))
    return grown_x.overlaps(b) or grown_y.overlaps(b)


class TestGrowRect:
    def test_width_is_fixed_by_seed_row(self, maze):
        grid, _, _ = maze([
            "#..",
            "...",
            "...",
        ])
        assert grow_rect(grid, (0, 1)) == Rectangle.new_unchecked((0, 1), (3, 3))
        assert grow_rect(grid, (1, 0)) == Rectangle.new_unchecked((1, 0), (3, 3))

    def test_height_needs_whole_row_clear(self, maze):
        grid, _, _ = maze([
            "...",
            "...",
            "#..",
        ])
        assert grow_rect(grid, (0, 0)) == Rectangle.new_unchecked((0, 0), (3, 2))

    def test_stops_at_claimed_cells(self, maze):
        grid, _, _ = maze([
            "...",
            "...",
        ])
        grid.set((1, 0), 1)
        assert grow_rect(grid, (2, 1)) == Rectangle.new_unchecked((0, 1), (3, 2))

    def test_single_cell(self, maze):
        grid, _, _ = maze([
            "#.#",
            "#.#",
        ])
        grid.set((1, 1), WALL)
        assert grow_rect(grid, (1, 0)) == Rectangle.new_unchecked((1, 0), (2, 1))


class TestExtractGraph:
    def test_open_room_is_one_rectangle(self, maze):
        grid, start, goal = maze(OPEN_ROOM)
        graph = extract_graph(grid, start, goal)
        assert len(graph) == 1
        assert graph.edges == set()
        assert graph.start() == graph.goal() == 1
        assert graph.get_node(1) == Rectangle.new_unchecked((0, 0), (4, 3))

        solved = graph.prune().to_adjacency_graph().into_dijkstra()
        assert solved.goal_distance() == 0

    def test_staircase_corridor(self, maze):
        grid, start, goal = maze(STAIRCASE)
        graph = extract_graph(grid, start, goal)

        assert graph.nodes() == {
            1: Rectangle.new_unchecked((0, 0), (2, 1)),
            2: Rectangle.new_unchecked((1, 1), (3, 2)),
            3: Rectangle.new_unchecked((2, 2), (4, 3)),
            4: Rectangle.new_unchecked((3, 3), (5, 4)),
            5: Rectangle.new_unchecked((4, 4), (6, 5)),
        }
        assert graph.edges == {Edge.new(1, 2), Edge.new(2, 3), Edge.new(3, 4), Edge.new(4, 5)}
        assert graph.start() == 1
        assert graph.goal() == 5

        pruned = graph.prune()
        assert len(pruned) == 5
        assert len(pruned.edges) == 4

        solved = pruned.to_adjacency_graph().into_dijkstra()
        assert solved.goal_distance() == 4
        assert solved.path() == [1, 2, 3, 4, 5]

    def test_dead_end_branch_is_pruned(self, maze):
        grid, start, goal = maze(BRANCHED)
        graph = extract_graph(grid, start, goal)

        assert len(graph) == 5
        assert graph.edges == {Edge.new(1, 2), Edge.new(2, 3), Edge.new(3, 4), Edge.new(4, 5)}
        assert graph.start() == 1
        assert graph.goal() == 3

        pruned = graph.prune()
        assert set(pruned.nodes()) == {1, 2, 3}
        assert pruned.edges == {Edge.new(1, 2), Edge.new(2, 3)}

        solved = pruned.to_adjacency_graph().into_dijkstra()
        assert solved.goal_distance() == 2
        assert solved.path() == [1, 2, 3]

    def test_disconnected_goal_reports_no_path(self, maze):
        grid, start, goal = maze(DISCONNECTED)
        assert extract_graph(grid, start, goal) is None

    def test_wall_terminals_rejected(self, maze):
        grid, start, goal = maze(STAIRCASE)
        with pytest.raises(ValueError):
            extract_graph(grid, (2, 0), goal)
        with pytest.raises(ValueError):
            extract_graph(grid, start, (0, 4))

    def test_out_of_bounds_terminals_rejected(self, maze):
        grid, start, goal = maze(OPEN_ROOM)
        with pytest.raises(ValueError):
            extract_graph(grid, start, (4, 0))
        with pytest.raises(ValueError):
            extract_graph(grid, (-1, 0), goal)

    def test_start_equals_goal(self, maze):
        grid, start, _ = maze(STAIRCASE)
        graph = extract_graph(grid, start, start)
        assert graph.start() == graph.goal() == 1

    def test_grid_cells_are_claimed(self, maze):
        grid, start, goal = maze(STAIRCASE)
        graph = extract_graph(grid, start, goal)
        for id, rect in graph.nodes().items():
            assert all(grid.get(cell) == id for cell in rect.iter_cells())
        assert not np.any(grid.squares == CLEAR)

    @pytest.mark.parametrize("seed", range(6))
    def test_random_maze_properties(self, random_maze, seed):
        image = random_maze(seed)
        start = (0, 0)
        reachable = reachable_cells(image, start)
        goal = max(reachable)

        graph = extract_graph(Grid.from_image(image), start, goal)
        rects = graph.nodes()

        # Node ids are assigned from 1 without gaps.
        assert sorted(rects) == list(range(1, len(rects) + 1))

        # Rectangles are disjoint and cover exactly the cells reachable from start.
        for a, b in itertools.combinations(rects.values(), 2):
            assert not a.overlaps(b)
        covered = [cell for rect in rects.values() for cell in rect.iter_cells()]
        assert len(covered) == len(set(covered))
        assert set(covered) == reachable

        # Edges link exactly the rectangles that share a border.
        expected = {Edge.new(a, b) for a, b in itertools.combinations(rects, 2) if touching(rects[a], rects[b])}
        assert graph.edges == expected

        # Distances on the pruned graph match the unpruned connectivity.
        pruned = graph.prune()
        solved = pruned.to_adjacency_graph().into_dijkstra()
        full = graph.to_adjacency_graph().to_networkx()
        lengths = nx.single_source_shortest_path_length(full, graph.start())
        for id in pruned.nodes():
            assert solved.distance(id) == lengths[id]

        path = solved.path()
        assert path[0] == graph.start()
        assert path[-1] == graph.goal()
        assert len(path) - 1 == solved.goal_distance()


class TestDefaultTerminals:
    def test_staircase(self, maze):
        grid, start, goal = maze(STAIRCASE)
        assert default_terminals(grid) == (start, goal)

    def test_falls_back_to_bottom_row(self, maze):
        grid, _, _ = maze([
            "#.#",
            "#.#",
            "..#",
        ])
        assert default_terminals(grid) == ((1, 0), (1, 2))

    def test_no_opening(self, maze):
        grid, _, _ = maze([
            "###",
            "#.#",
        ])
        with pytest.raises(ValueError):
            default_terminals(grid)


class TestRectMap:
    def test_requires_a_source(self):
        with pytest.raises(ValueError):
            RectMap()

    def test_process_solves_maze(self):
        image, start, goal = parse_maze(BRANCHED)
        floor_plan = RectMap(image=image)
        solved = floor_plan.process(start, goal)

        assert solved is floor_plan.graph
        assert solved.goal_distance() == 2
        assert floor_plan.path == [1, 2, 3]
        assert len(floor_plan.rectangles) == 5
        assert len(floor_plan.pruned) == 3

    def test_process_defaults_terminals(self):
        image, _, _ = parse_maze(STAIRCASE)
        solved = RectMap(image=image).process()
        assert solved.goal_distance() == 4

    def test_process_unreachable(self, caplog):
        image, start, goal = parse_maze(DISCONNECTED)
        floor_plan = RectMap(image=image)
        with caplog.at_level(logging.WARNING):
            assert floor_plan.process(start, goal) is None
        assert floor_plan.rectangles is None
        assert floor_plan.path is None
        assert "not connected" in caplog.text

    def test_debug_reports_timings(self, caplog):
        image, start, goal = parse_maze(STAIRCASE)
        with caplog.at_level(logging.INFO):
            RectMap(image=image, debug=True).process(start, goal)
        assert "Processing completed" in caplog.text
