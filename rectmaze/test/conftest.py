import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from rectmaze.core.grid import Grid

# Staircase corridor: five 2-cell steps, each its own rectangle.
STAIRCASE = [
    "S.####",
    "#..###",
    "##..##",
    "###..#",
    "####.G",
]

# Corridor with one bend per rectangle and a two-rectangle dead end hanging off the last one.
BRANCHED = [
    "S..####",
    "##.####",
    "##....G",
    "####.##",
    "####..#",
]

OPEN_ROOM = [
    "S...",
    "....",
    "...G",
]

DISCONNECTED = [
    "S.#..",
    "..#.G",
]


def parse_maze(rows):
    """
    Turns ASCII art into a grayscale image. '#' is a wall, everything else free space;
    'S' and 'G' mark the start and goal cells.

    Returns:
    - (image, start, goal)
    """
    image = np.array([[0 if c == '#' else 255 for c in row] for row in rows], dtype=np.uint8)
    marks = {c: (x, y) for y, row in enumerate(rows) for x, c in enumerate(row) if c in "SG"}
    return image, marks.get('S'), marks.get('G')


@pytest.fixture
def maze():
    def _maze(rows):
        image, start, goal = parse_maze(rows)
        return Grid.from_image(image), start, goal
    return _maze


@pytest.fixture
def random_maze():
    """Random 30x20 grid, roughly a third walls, with a clear top-left corner."""
    def _random_maze(seed):
        rng = np.random.default_rng(seed)
        image = np.where(rng.random((20, 30)) < 0.33, 0, 255).astype(np.uint8)
        image[0, 0] = 255
        return image
    return _random_maze
