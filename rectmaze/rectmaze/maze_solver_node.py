import argparse
import logging
import sys

from rectmaze.core.rectmap import RectMap
from rectmaze.core.util import OUTPUT_FILE, THRESHOLD


def setup_logging(level: int, log_file: str = None) -> logging.Logger:
    """Configures the 'rectmaze' logger with a console handler and an optional file handler."""
    root_logger = logging.getLogger("rectmaze")
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter("[%(levelname)s] [%(name)s]: %(message)s")
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="w")
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.error("Could not open log file %s: %s", log_file, e)

    return root_logger


class MazeSolverNode:
    def __init__(self, params: dict = None):
        self._parameters = {}
        self._overrides = dict(params or {})

        self.declare_parameter('map', None)
        self.declare_parameter('map_threshold', THRESHOLD)
        self.declare_parameter('start', None)
        self.declare_parameter('goal', None)
        self.declare_parameter('output', OUTPUT_FILE)
        self.declare_parameter('show', False)
        self.declare_parameter('debug_mode', False)

        self.map_file = self.get_parameter('map')
        self.threshold = self.get_parameter('map_threshold')
        self.start = self.get_parameter('start')
        self.goal = self.get_parameter('goal')
        self.output = self.get_parameter('output')
        self.show = self.get_parameter('show')
        self.debug_mode = self.get_parameter('debug_mode')

        unknown = set(self._overrides) - set(self._parameters)
        if unknown:
            raise ValueError(f"Unknown parameter(s): {sorted(unknown)}")
        if not self.map_file:
            raise ValueError("Parameter 'map' is required.")

        self.logger = logging.getLogger("rectmaze.maze_solver_node")
        self.floor_plan = None

    def declare_parameter(self, name: str, default):
        value = self._overrides.get(name, default)
        self._parameters[name] = default if value is None else value

    def get_parameter(self, name: str):
        return self._parameters[name]

    def solve(self) -> bool:
        """
        Loads the maze, solves it and writes the rendered solution.

        Returns:
        - bool: True if a path was found.
        """
        self.floor_plan = RectMap(filename=self.map_file, threshold=self.threshold,
                                  debug=self.debug_mode, logger=self.logger)
        graph = self.floor_plan.process(start=self.start, goal=self.goal)
        if graph is None:
            self.logger.warning("No path found.")
            return False

        self.logger.info("Rendering...")
        path = self.floor_plan.path
        self.floor_plan.save(self.output, graph, path)
        if self.show:
            self.floor_plan.print(graph, path, show=True, mode=["rectangles", "path"])
        return True


def parse_args(args=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="rectmaze-solve",
        description="Solve a black-and-white maze image through a rectangle decomposition.")
    parser.add_argument("map", help="Maze image; white pixels are free space.")
    parser.add_argument("--threshold", type=int, default=THRESHOLD,
                        help=f"Grayscale binarisation threshold (default: {THRESHOLD}).")
    parser.add_argument("--start", type=int, nargs=2, metavar=("X", "Y"),
                        help="Start cell (default: first free cell on the top row).")
    parser.add_argument("--goal", type=int, nargs=2, metavar=("X", "Y"),
                        help="Goal cell (default: last free cell on the right column).")
    parser.add_argument("-o", "--output", default=OUTPUT_FILE,
                        help=f"Rendered solution image (default: {OUTPUT_FILE}).")
    parser.add_argument("--show", action="store_true", help="Display the solution with matplotlib.")
    parser.add_argument("--debug", action="store_true", help="Verbose logging and stage timings.")
    parser.add_argument("--log-file", help="Also write the log to this file.")
    return parser.parse_args(args)


def main(args=None):
    options = parse_args(args)
    logger = setup_logging(logging.DEBUG if options.debug else logging.INFO, options.log_file)

    try:
        node = MazeSolverNode({
            'map': options.map,
            'map_threshold': options.threshold,
            'start': tuple(options.start) if options.start else None,
            'goal': tuple(options.goal) if options.goal else None,
            'output': options.output,
            'show': options.show,
            'debug_mode': options.debug,
        })
        solved = node.solve()
    except ValueError as e:
        logger.error("%s", e)
        return 2

    return 0 if solved else 1


if __name__ == '__main__':
    sys.exit(main())
