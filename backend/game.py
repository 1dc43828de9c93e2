from enum import Enum

import numpy as np

from config import BOARD_SIZE


class GameError(Exception):
    """Base class for recoverable engine errors."""


class NoHistoryError(GameError):
    """Raised by undo when no move has been recorded since the last undo."""


class InvalidDirectionError(GameError, ValueError):
    """Raised when a move direction cannot be understood."""


class Direction(Enum):
    UP = (-1, 0)
    DOWN = (1, 0)
    LEFT = (0, -1)
    RIGHT = (0, 1)

    @property
    def vector(self):
        return self.value


def parse_direction(direction):
    """Accepts a Direction or a case-insensitive name such as 'left'."""
    if isinstance(direction, Direction):
        return direction
    if isinstance(direction, str):
        try:
            return Direction[direction.strip().upper()]
        except KeyError:
            pass
    raise InvalidDirectionError(f"Unknown direction: {direction!r}")


def build_traversals(vector, size=BOARD_SIZE):
    """Row and column visiting order so the cells nearest the target edge come first."""
    rows = list(range(size))
    cols = list(range(size))
    if vector[0] == 1:
        rows.reverse()
    if vector[1] == 1:
        cols.reverse()
    return rows, cols


class Tile:
    __slots__ = ("value", "row", "col")

    def __init__(self, value, row, col):
        self.value = value
        self.row = row
        self.col = col

    @property
    def position(self):
        return self.row, self.col

    def __repr__(self):
        return f"Tile({self.value}, row={self.row}, col={self.col})"


class Grid:
    """Square matrix of optional tiles."""

    def __init__(self, size=BOARD_SIZE):
        self.size = size
        self.cells = [[None] * size for _ in range(size)]

    @classmethod
    def from_values(cls, values):
        """Builds a grid of fresh tiles from an integer matrix, 0 meaning empty."""
        values = np.asarray(values, dtype=int)
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise ValueError(f"Expected a square matrix, got shape {values.shape}")
        grid = cls(values.shape[0])
        for r, c in zip(*np.nonzero(values)):
            grid.insert(Tile(int(values[r, c]), int(r), int(c)))
        return grid

    def within_bounds(self, row, col):
        return 0 <= row < self.size and 0 <= col < self.size

    def cell_content(self, row, col):
        if self.within_bounds(row, col):
            return self.cells[row][col]
        return None

    def is_available(self, row, col):
        return self.within_bounds(row, col) and self.cells[row][col] is None

    def available_cells(self):
        return [(r, c) for r in range(self.size) for c in range(self.size)
                if self.cells[r][c] is None]

    def insert(self, tile):
        self.cells[tile.row][tile.col] = tile

    def remove(self, tile):
        if self.cells[tile.row][tile.col] is tile:
            self.cells[tile.row][tile.col] = None

    def move_tile(self, tile, row, col):
        self.cells[tile.row][tile.col] = None
        tile.row, tile.col = row, col
        self.cells[row][col] = tile

    def tiles(self):
        return [tile for row in self.cells for tile in row if tile is not None]

    def values(self):
        board = get_empty_board(self.size)
        for tile in self.tiles():
            board[tile.row, tile.col] = tile.value
        return board


def find_farthest_position(grid, row, col, vector):
    """Walks from (row, col) along vector over empty cells.

    Returns the last empty cell reached and the first cell after it, which is
    either out of bounds or occupied.
    """
    while True:
        previous = (row, col)
        row, col = row + vector[0], col + vector[1]
        if not grid.is_available(row, col):
            return previous, (row, col)


def get_empty_board(size=BOARD_SIZE):
    return np.zeros((size, size), dtype=int)


def has_tile(board, value):
    return bool(np.any(board == value))


def is_game_over(board):
    """Checks if the game is over (no empty cells and no possible merges)."""
    if 0 in board:
        return False

    size = board.shape[0]
    for i in range(size):
        for j in range(size):
            current = board[i, j]
            if j < size - 1 and current == board[i, j + 1]:
                return False
            if i < size - 1 and current == board[i + 1, j]:
                return False

    return True
