from numbers import Integral
from typing import Tuple

# Pixel value treated as free space after binarisation. Anything else is a wall.
WHITE = 255
# Grayscale threshold used to binarise the input image:
# - pixels strictly above the threshold become WHITE, everything else black
# - 250 keeps slightly off-white scans clear while rejecting anti-aliased wall edges
# - lower it for faded scans where corridors are light gray
THRESHOLD = 250

# Rendering colours (BGR, as OpenCV expects).
RECT_COLOR = (0x00, 0xff, 0x00)
PATH_COLOR = (0x00, 0x00, 0xff)

# Default output file for the solved maze.
OUTPUT_FILE = "solved.png"

# Unit steps along each axis, used when walking boundary strips.
STEP_X = (1, 0)
STEP_Y = (0, 1)


def validate_vector(v: tuple | list, name: str = "vector") -> None:
    """
    Validate that the input is a tuple or list of two integers.

    Parameters:
    - v (tuple | list): The input vector to validate.
    - name (str): The name of the vector for error messages.
    """
    if not (isinstance(v, (tuple, list)) and len(v) == 2 and all(isinstance(c, Integral) for c in v)):
        raise ValueError(f"{name} must be a tuple or list of two integers.")


def vec_add(a: tuple | list, b: tuple | list) -> Tuple[int, int]:
    """
    Add two 2D integer vectors.

    Parameters:
    - a (tuple/list): First vector.
    - b (tuple/list): Second vector.
    Returns:
    - tuple: Resulting vector (x, y).
    """
    validate_vector(a, "a")
    validate_vector(b, "b")
    ax, ay = a
    bx, by = b
    return ax + bx, ay + by


def vec_sub(a: tuple | list, b: tuple | list) -> Tuple[int, int]:
    """
    Subtract two 2D integer vectors.

    Parameters:
    - a (tuple/list): First vector.
    - b (tuple/list): Second vector.
    Returns:
    - tuple: Resulting vector (x, y).
    """
    validate_vector(a, "a")
    validate_vector(b, "b")
    ax, ay = a
    bx, by = b
    return ax - bx, ay - by


def get_xy(pt: tuple | list | object) -> Tuple[int, int]:
    """
    Accept either an (x, y) tuple/list of two integers, or an object with .x and .y.
    Returns a clean (x, y) tuple of ints.

    Parameters:
    - pt (tuple | list | object): The cell coordinate to convert.
    Returns:
    - Tuple[int, int]: The x and y coordinates of the cell.
    """
    if hasattr(pt, 'x') and hasattr(pt, 'y'):
        return int(pt.x), int(pt.y)
    if isinstance(pt, (tuple, list)) and len(pt) == 2 and all(isinstance(c, Integral) for c in pt):
        return int(pt[0]), int(pt[1])
    raise ValueError("Point must be a tuple of two integers or have .x and .y attributes")
