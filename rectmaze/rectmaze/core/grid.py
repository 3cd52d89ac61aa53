from typing import Tuple, Self

import numpy as np

from .rectangle import Rectangle
from .util import WHITE

# Cell states. Positive values mean the cell is covered by the node with that id.
CLEAR = 0
WALL = -1


class Grid:
    """
    Dense per-cell state of a maze: CLEAR, WALL, or the id of the rectangle covering the cell.

    Cells are addressed as (x, y) and stored row-major in a (height, width) array.
    """

    def __init__(self, squares: np.ndarray) -> None:
        """
        Parameters:
        - squares (np.ndarray): 2D integer array of cell states, shape (height, width).
        """
        if squares.ndim != 2:
            raise ValueError("Grid squares must be a 2D array")
        self.squares = squares.astype(np.int32, copy=True)

    @classmethod
    def from_image(cls, image: np.ndarray, white: int = WHITE) -> Self:
        """
        Builds a grid from a binary grayscale image. Pixels exactly equal to `white`
        are CLEAR, every other value is a WALL.

        Parameters:
        - image (np.ndarray): 2D grayscale image, shape (height, width).
        - white (int): pixel value marking free space.
        Returns:
        - Grid: the new grid.
        """
        image = np.asarray(image)
        if image.ndim != 2:
            raise ValueError("image must be a 2D grayscale array")
        return cls(np.where(image == white, CLEAR, WALL))

    @property
    def width(self) -> int:
        return self.squares.shape[1]

    @property
    def height(self) -> int:
        return self.squares.shape[0]

    def in_bounds(self, pos: Tuple[int, int]) -> bool:
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, pos: Tuple[int, int]) -> int:
        if not self.in_bounds(pos):
            raise IndexError(f"Grid position {pos} out of bounds ({self.width}x{self.height})")
        x, y = pos
        return int(self.squares[y, x])

    def set(self, pos: Tuple[int, int], state: int) -> None:
        if not self.in_bounds(pos):
            raise IndexError(f"Grid position {pos} out of bounds ({self.width}x{self.height})")
        x, y = pos
        self.squares[y, x] = state

    def is_clear(self, pos: Tuple[int, int]) -> bool:
        """
        True if the position is inside the grid and not yet claimed or walled.
        """
        return self.in_bounds(pos) and self.get(pos) == CLEAR

    def claim(self, rect: Rectangle, node_id: int) -> None:
        """
        Marks every cell of `rect` as covered by `node_id`.

        Parameters:
        - rect (Rectangle): region to claim, must lie inside the grid and be entirely CLEAR.
        - node_id (int): positive id of the owning node.
        """
        if node_id <= 0:
            raise ValueError("node_id must be positive")
        (xmin, ymin), (xmax, ymax) = rect.mins, rect.maxs
        region = self.squares[ymin:ymax, xmin:xmax]
        if xmin < 0 or ymin < 0 or region.shape != (rect.height(), rect.width()):
            raise IndexError(f"{rect} is not inside the grid")
        if np.any(region != CLEAR):
            raise RuntimeError(f"{rect} overlaps cells that are not clear")
        region[...] = node_id

    def __repr__(self) -> str:
        return f"Grid(width={self.width}, height={self.height})"
