"""Collaborators the engine talks to: best-score storage, analytics, sound,
rendering and settle scheduling.

Everything here is optional for the engine. Failures raised by any
collaborator are caught by `call_safely` and only logged.
"""
import json
import logging
import os

from config import BEST_SCORE_KEY

logger = logging.getLogger(__name__)

SOUND_TAGS = ("slide", "merge", "gameOver", "undo", "error")


def call_safely(hook, *args):
    """Calls a collaborator and discards any exception it raises."""
    if hook is None:
        return None
    try:
        return hook(*args)
    except Exception:
        logger.warning("Collaborator %r failed", hook, exc_info=True)
        return None


def run_immediately(delay, callback):
    """Scheduler that skips the settle delay entirely."""
    callback()


class MemoryBestScoreStore:
    def __init__(self, best=0):
        self.best = best

    def load(self):
        return self.best

    def save(self, score):
        self.best = score


class JsonFileBestScoreStore:
    """Keeps the best score in a small JSON document on disk."""

    def __init__(self, path):
        self.path = path

    def load(self):
        if not os.path.exists(self.path):
            return 0
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return int(data.get(BEST_SCORE_KEY, 0))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Could not read best score from %s: %s", self.path, e)
            return 0

    def save(self, score):
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump({BEST_SCORE_KEY: int(score)}, f)
        os.replace(tmp_path, self.path)


class LoggingEventSink:
    """Analytics sink that writes every event to the log."""

    def __init__(self, prefix="puzzle2048_"):
        self.prefix = prefix

    def track(self, name, data):
        logger.info("Event: %s%s %s", self.prefix, name, data)


class SilentSoundHook:
    def play(self, tag):
        if tag not in SOUND_TAGS:
            logger.debug("Unknown sound tag: %s", tag)
