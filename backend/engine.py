import functools
import logging
import random
from collections import namedtuple

from collaborators import (LoggingEventSink, MemoryBestScoreStore, SilentSoundHook,
                           call_safely, run_immediately)
from config import GameConfig
from game import (Grid, NoHistoryError, Tile, build_traversals, find_farthest_position,
                  has_tile, is_game_over, parse_direction)

logger = logging.getLogger(__name__)

History = namedtuple("History", ["grid_values", "score"])


class MoveAnnotations:
    """Per-move animation bookkeeping, keyed by tile identity."""

    def __init__(self):
        self.previous_positions = {}
        self.merged_from = {}

    def is_merge_product(self, tile):
        return tile in self.merged_from

    def previous_position(self, tile):
        return self.previous_positions.get(tile)

    def sources(self, tile):
        return self.merged_from.get(tile)


class GameEngine:
    """Owns the grid, score and game phase of one 2048 game.

    Collaborators are injected; any failure inside them is logged and ignored.
    The default scheduler runs the settle step right away, pass another one to
    wait for the front end's slide animation.
    """

    def __init__(self, config=None, random_source=random.random, best_scores=None,
                 events=None, sounds=None, render=None, scheduler=run_immediately):
        self.config = config or GameConfig()
        self.size = self.config.size
        self.random_source = random_source
        self.best_scores = best_scores if best_scores is not None else MemoryBestScoreStore()
        self.events = events if events is not None else LoggingEventSink()
        self.sounds = sounds if sounds is not None else SilentSoundHook()
        self.render = render
        self.scheduler = scheduler

        self.best_score = call_safely(self.best_scores.load) or 0
        self._move_id = 0
        self.initialize()

    def initialize(self):
        # outstanding settle callbacks from the previous game become stale
        self._move_id += 1
        self.grid = Grid(self.size)
        self.score = 0
        self.game_over = False
        self.won = False
        self.keep_playing = False
        self.moving = False
        self.history = None
        self.annotations = MoveAnnotations()
        self.spawned = None

        for _ in range(self.config.start_tiles):
            self.place_random_tile()

    def new_game(self):
        self.initialize()
        logger.info("New game started (best score %d)", self.best_score)
        self._track("newGame", {"bestScore": self.best_score})
        self._render()

    def place_random_tile(self):
        cells = self.grid.available_cells()
        if not cells:
            return None

        index = min(int(self.random_source() * len(cells)), len(cells) - 1)
        row, col = cells[index]
        value = 2 if self.random_source() < self.config.two_probability else 4
        tile = Tile(value, row, col)
        self.grid.insert(tile)
        self.spawned = tile
        return tile

    @property
    def accepting_moves(self):
        if self.game_over or self.moving:
            return False
        return not (self.won and not self.keep_playing)

    def attempt_move(self, direction):
        """Slides every tile towards direction, merging equal neighbours once.

        Returns True when the grid changed.
        """
        direction = parse_direction(direction)
        if not self.accepting_moves:
            return False

        snapshot = History(self.grid.values(), self.score)
        annotations = MoveAnnotations()
        for tile in self.grid.tiles():
            annotations.previous_positions[tile] = tile.position

        vector = direction.vector
        rows, cols = build_traversals(vector, self.size)
        moved = False
        gained = 0
        merges = []

        for row in rows:
            for col in cols:
                tile = self.grid.cell_content(row, col)
                if tile is None:
                    continue

                farthest, following = find_farthest_position(self.grid, row, col, vector)
                blocker = self.grid.cell_content(*following)

                if (blocker is not None and blocker.value == tile.value
                        and not annotations.is_merge_product(blocker)):
                    merged = Tile(tile.value * 2, blocker.row, blocker.col)
                    annotations.merged_from[merged] = (tile, blocker)
                    self.grid.remove(tile)
                    self.grid.remove(blocker)
                    self.grid.insert(merged)
                    # the consumed tile ends its slide on the merge cell
                    tile.row, tile.col = merged.row, merged.col
                    gained += merged.value
                    merges.append(merged)
                    moved = True
                elif farthest != (row, col):
                    self.grid.move_tile(tile, *farthest)
                    moved = True

        if not moved:
            if not self.moves_available():
                self._declare_game_over()
            return False

        self.score += gained
        self.history = snapshot
        self.annotations = annotations
        logger.debug("Moved %s, gained %d, score %d", direction.name.lower(), gained, self.score)

        self._play("slide")
        for merged in merges:
            self._play("merge")
            self._track("merge", {"value": merged.value, "score": self.score})

        self.spawned = None
        self.place_random_tile()
        self.moving = True
        self._move_id += 1
        settle = functools.partial(self.settle, self._move_id)
        self._render()
        self._track("move", {"direction": direction.name.lower(), "score": self.score})
        try:
            self.scheduler(self.config.settle_delay, settle)
        except Exception:
            logger.warning("Scheduler failed, settling immediately", exc_info=True)
            settle()
        return True

    def settle(self, move_id=None):
        """Runs once the move animation is over: best score and terminal checks.

        A callback scheduled by a move that was since undone or replaced by a
        new game is ignored.
        """
        if move_id is not None and move_id != self._move_id:
            return
        self.moving = False

        if self.score > self.best_score:
            self.best_score = self.score
            call_safely(self.best_scores.save, self.best_score)

        board = self.grid.values()
        if not self.won and has_tile(board, self.config.win_value):
            self.won = True
            logger.info("Reached %d with score %d", self.config.win_value, self.score)
            if not self.keep_playing:
                self._track("victory", {"score": self.score})
        elif is_game_over(board):
            self._declare_game_over()

        self._render()

    def _declare_game_over(self):
        if self.game_over:
            return
        self.game_over = True
        logger.info("Game over with score %d", self.score)
        self._play("gameOver")
        self._track("gameOver", {"score": self.score, "best": self.best_score})

    def moves_available(self):
        return not is_game_over(self.grid.values())

    def undo(self):
        """Restores the grid and score saved before the last move."""
        if self.history is None:
            self._play("error")
            raise NoHistoryError("Nothing to undo")

        self.grid = Grid.from_values(self.history.grid_values)
        self.score = self.history.score
        self.history = None
        self.game_over = False
        self.moving = False
        self._move_id += 1
        self.annotations = MoveAnnotations()
        self.spawned = None

        self._play("undo")
        self._track("undo", {"score": self.score})
        self._render()

    def undo_with_ad(self):
        self._track("adView", {"adType": "interstitial"})
        self.undo()

    def continue_playing(self):
        """Leaves the victory screen and keeps playing on the same grid."""
        self.keep_playing = True
        self._render()

    def _describe(self, tile):
        previous = self.annotations.previous_position(tile)
        return {
            "value": tile.value,
            "row": tile.row,
            "col": tile.col,
            "previousPosition": ({"row": previous[0], "col": previous[1]}
                                 if previous is not None else None),
        }

    def tile_states(self):
        """Render information: where each tile came from and what it merged from."""
        states = []
        for tile in self.grid.tiles():
            state = self._describe(tile)
            sources = self.annotations.sources(tile)
            state["mergedFrom"] = ([self._describe(t) for t in sources]
                                   if sources is not None else None)
            state["isNew"] = tile is self.spawned
            states.append(state)
        return states

    def state(self):
        return {
            "grid": self.grid.values().tolist(),
            "tiles": self.tile_states(),
            "score": self.score,
            "bestScore": self.best_score,
            "gameOver": self.game_over,
            "won": self.won,
            "keepPlaying": self.keep_playing,
            "moving": self.moving,
            "canUndo": self.history is not None,
        }

    def _play(self, tag):
        call_safely(self.sounds.play, tag)

    def _track(self, name, data):
        call_safely(self.events.track, name, data)

    def _render(self):
        if self.render is not None:
            call_safely(self.render, self.state())
