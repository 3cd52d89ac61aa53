from typing import Iterator, Tuple, Self

from .util import get_xy


class Rectangle:
    """
    Represents a half-open axis-aligned rectangle [mins, maxs) over grid cells.

    A cell (x, y) belongs to the rectangle when mins.x <= x < maxs.x and mins.y <= y < maxs.y,
    so a rectangle with mins == maxs is empty and a single cell has width and height 1.
    """

    __slots__ = ("mins", "maxs")

    def __init__(self, a: Tuple[int, int], b: Tuple[int, int]) -> None:
        """
        Initializes a Rectangle from two opposite corners, in any order.

        Parameters:
        - a: First corner as a tuple (x, y).
        - b: Second corner as a tuple (x, y).
        """
        ax, ay = get_xy(a)
        bx, by = get_xy(b)
        self.mins = (min(ax, bx), min(ay, by))
        self.maxs = (max(ax, bx), max(ay, by))

    @classmethod
    def new_unchecked(cls, mins: Tuple[int, int], maxs: Tuple[int, int]) -> Self:
        """
        Creates a Rectangle from corners that are already ordered.

        Parameters:
        - mins: Inclusive lower corner (x, y).
        - maxs: Exclusive upper corner (x, y).
        Returns:
        - Rectangle: the rectangle [mins, maxs).
        """
        mins, maxs = get_xy(mins), get_xy(maxs)
        if maxs[0] < mins[0] or maxs[1] < mins[1]:
            raise ValueError(f"Rectangle has negative extent: mins={mins}, maxs={maxs}")
        rect = cls.__new__(cls)
        rect.mins = mins
        rect.maxs = maxs
        return rect

    def width(self) -> int:
        return self.maxs[0] - self.mins[0]

    def height(self) -> int:
        return self.maxs[1] - self.mins[1]

    def get_area(self) -> int:
        """
        Returns the number of cells covered by the rectangle.
        """
        return self.width() * self.height()

    def contains(self, p: Tuple[int, int]) -> bool:
        """
        Checks if a cell lies inside the rectangle.

        Parameters:
        - p: Cell coordinate (x, y).
        Returns:
        - bool: True if the cell is covered by the rectangle.
        """
        x, y = p
        return (self.mins[0] <= x < self.maxs[0] and
                self.mins[1] <= y < self.maxs[1])

    def intersect(self, other: Self) -> Self:
        """
        Returns the overlap of two rectangles. Disjoint rectangles produce an empty
        rectangle clamped at the lower corner of the overlap.

        Parameters:
        - other: Another Rectangle.
        Returns:
        - Rectangle: the intersection.
        """
        xmin = max(self.mins[0], other.mins[0])
        ymin = max(self.mins[1], other.mins[1])
        xmax = max(xmin, min(self.maxs[0], other.maxs[0]))
        ymax = max(ymin, min(self.maxs[1], other.maxs[1]))
        return Rectangle.new_unchecked((xmin, ymin), (xmax, ymax))

    def overlaps(self, other: Self) -> bool:
        return self.intersect(other).get_area() > 0

    def iter_cells(self) -> Iterator[Tuple[int, int]]:
        """
        Yields every covered cell in row-major order.
        """
        for y in range(self.mins[1], self.maxs[1]):
            for x in range(self.mins[0], self.maxs[0]):
                yield x, y

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rectangle):
            return NotImplemented
        return self.mins == other.mins and self.maxs == other.maxs

    def __hash__(self) -> int:
        return hash((self.mins, self.maxs))

    def __repr__(self) -> str:
        return f"Rectangle(mins={self.mins}, maxs={self.maxs})"
