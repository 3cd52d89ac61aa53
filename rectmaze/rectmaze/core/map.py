import logging
import os

import cv2
import numpy as np
from matplotlib import pyplot as plt
from matplotlib.patches import Rectangle as MplRect

from .util import PATH_COLOR, RECT_COLOR, THRESHOLD

logger = logging.getLogger(__name__)


class Map:
    """
    A class to handle the loading, binarisation and visualization of a maze image.
    """

    def __init__(self, filename: str = None, threshold: int = THRESHOLD, image: np.ndarray = None) -> None:
        """
        Initializes the Map object with an image file and a threshold for processing.

        Parameters:
        - filename: Path to the image file to be processed.
        - threshold: Threshold value for binarizing the image (default is 250).
        - image: A numpy grayscale image array to use directly (instead of loading from disk).
        """
        if not isinstance(threshold, int) or not 0 <= threshold <= 255:
            raise ValueError("threshold must be an integer between 0 and 255")

        if image is not None:
            image = np.asarray(image)
            if image.ndim != 2:
                raise ValueError("image must be a 2D grayscale array")
            self.filename = None
            self.image = image.astype(np.uint8, copy=False)
            self.grid_image = cv2.threshold(self.image, threshold, 255, cv2.THRESH_BINARY)[1]
            return

        if not isinstance(filename, str) or not filename:
            raise ValueError("Either 'filename' or 'image' must be provided.")

        if not os.path.exists(filename):
            raise ValueError(f"File not found: {filename}")

        self.filename = filename

        self.image = cv2.imread(filename, cv2.IMREAD_GRAYSCALE)
        if self.image is None:
            raise ValueError(f"Failed to load image: {filename}")

        _, self.grid_image = cv2.threshold(self.image, threshold, 255, cv2.THRESH_BINARY)
        logger.debug("Loaded %s (%dx%d)", filename, self.image.shape[1], self.image.shape[0])

    def render(self, graph, path: list = None) -> np.ndarray:
        """
        Paints the decomposition onto a colour copy of the binarised maze: every rectangle of
        `graph` in RECT_COLOR, then the rectangles of `path` in PATH_COLOR.

        Parameters:
        - graph: Any graph exposing nodes() -> {id: Rectangle} and get_node(id).
        - path: Node ids to highlight (default: nothing).
        Returns:
        - np.ndarray: BGR image of shape (height, width, 3).
        """
        canvas = cv2.cvtColor(self.grid_image, cv2.COLOR_GRAY2BGR)
        for rect in graph.nodes().values():
            self._fill_rect(canvas, rect, RECT_COLOR)
        for id in path or ():
            self._fill_rect(canvas, graph.get_node(id), PATH_COLOR)
        return canvas

    def save(self, filename: str, graph, path: list = None) -> None:
        """
        Renders the decomposition and writes it to `filename`. The format follows the extension.
        """
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if not cv2.imwrite(filename, self.render(graph, path)):
            raise RuntimeError(f"Failed to write image: {filename}")
        logger.info("Saved solution to %s", filename)

    @staticmethod
    def _fill_rect(canvas: np.ndarray, rect, color: tuple) -> None:
        # Clip to the canvas; rectangles are half-open so maxs is exclusive.
        height, width = canvas.shape[:2]
        xmin, ymin = max(rect.mins[0], 0), max(rect.mins[1], 0)
        xmax, ymax = min(rect.maxs[0], width), min(rect.maxs[1], height)
        if xmin < xmax and ymin < ymax:
            canvas[ymin:ymax, xmin:xmax] = color

    def print(self, graph, path: list = None, filename: str = 'output', extension: str = 'svg',
              save: bool | int = False, show: bool | int = True, mode: (list, str) = 'rectangles') -> None:
        """
        Draws the binarised maze with the decomposition and solution overlaid.

        Parameters:
        - graph: Graph whose node payloads are Rectangles.
        - path: Node ids of the solution path, drawn in 'path' mode.
        - filename: Base name for the output file (default is 'output').
        - extension: File format for saving the output (default is 'svg').
        - save: Whether to save the output to a file (default is False).
        - show: Whether to display the output using matplotlib (default is True).
        - mode: Feature modes to draw. Can be a single string or a list of strings.
                Valid options are 'rectangles' and 'path'.
        """
        modes = [mode] if isinstance(mode, str) else list(mode)
        valid_modes = {'rectangles', 'path'}
        invalid_modes = [m for m in modes if m not in valid_modes]
        if invalid_modes:
            raise ValueError(f"Invalid mode(s): {invalid_modes}. Choose from {valid_modes}.")

        order = {"rectangles": 0, "path": 1}
        modes = sorted(modes, key=lambda x: order[x])

        fig, ax = plt.subplots(
            figsize=(max(self.grid_image.shape[1] / 100, 1), max(self.grid_image.shape[0] / 100, 1)),
            dpi=100
        )
        plt.axis('off')

        ax.imshow(self.grid_image, cmap='gray', vmin=0, vmax=255, origin='upper', interpolation='none')

        for m in modes:
            if m == 'rectangles':
                self._draw_rects(ax, graph.nodes().values(), 'green')
            elif m == 'path' and path:
                self._draw_rects(ax, (graph.get_node(id) for id in path), 'red')

        if save:
            os.makedirs('out', exist_ok=True)
            plt.savefig(f'out/{filename}.{extension}', bbox_inches='tight', pad_inches=0, format=extension)
        if show:
            plt.show()
        plt.close(fig)

    @staticmethod
    def _draw_rects(ax, rects, color: str) -> None:
        # Pixel centres sit on integer coordinates in imshow, so cell edges are at -0.5.
        for rect in rects:
            ax.add_patch(MplRect((rect.mins[0] - 0.5, rect.mins[1] - 0.5), rect.width(), rect.height(),
                                 edgecolor=color, facecolor=color, alpha=0.5))
