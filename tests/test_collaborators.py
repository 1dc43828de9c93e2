import json
import logging

from collaborators import (JsonFileBestScoreStore, LoggingEventSink, MemoryBestScoreStore,
                           call_safely, run_immediately)
from config import BEST_SCORE_KEY


def test_call_safely_returns_result():
    assert call_safely(lambda a, b: a + b, 2, 3) == 5


def test_call_safely_swallows_and_logs(caplog, broken):
    with caplog.at_level(logging.WARNING, logger="collaborators"):
        assert call_safely(broken, 1) is None
    assert "failed" in caplog.text


def test_call_safely_skips_missing_hook():
    assert call_safely(None, 1) is None


def test_run_immediately():
    calls = []
    run_immediately(10.0, lambda: calls.append(True))
    assert calls == [True]


def test_memory_store():
    store = MemoryBestScoreStore(best=12)
    assert store.load() == 12
    store.save(40)
    assert store.load() == 40


class TestJsonFileStore:
    def test_missing_file_loads_zero(self, tmp_path):
        assert JsonFileBestScoreStore(str(tmp_path / "best.json")).load() == 0

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "best.json"
        store = JsonFileBestScoreStore(str(path))
        store.save(2048)
        assert store.load() == 2048
        assert json.loads(path.read_text()) == {BEST_SCORE_KEY: 2048}

    def test_corrupt_file_loads_zero(self, tmp_path):
        path = tmp_path / "best.json"
        path.write_text("{not json")
        assert JsonFileBestScoreStore(str(path)).load() == 0

    def test_unexpected_document_loads_zero(self, tmp_path):
        path = tmp_path / "best.json"
        path.write_text("[1, 2, 3]")
        assert JsonFileBestScoreStore(str(path)).load() == 0


def test_logging_event_sink(caplog):
    with caplog.at_level(logging.INFO, logger="collaborators"):
        LoggingEventSink().track("move", {"direction": "left", "score": 4})
    assert "puzzle2048_move" in caplog.text
    assert "'direction': 'left'" in caplog.text
