import json
import pytest
from rowcopy.progress import ProgressTracker


@pytest.fixture
def tracker(tmp_path):
    """Create a ProgressTracker instance."""
    return ProgressTracker(str(tmp_path / "state.json"))


def test_initial_state(tracker):
    assert tracker.get_all_copy_progress() == {}
    assert tracker.next_starting_id("src", "dst") is None


def test_start_copy(tracker):
    tracker.start_copy("src", "dst", starting_id=1, chunk_size=100000)

    progress = tracker.get_copy_progress("src", "dst")
    assert progress["status"] == "running"
    assert progress["next_starting_id"] == 1
    assert progress["chunk_size"] == 100000
    assert progress["id_column"] == "id"


def test_record_window(tracker):
    """Test completed windows move the resume point."""
    tracker.start_copy("src", "dst", 1, 100)
    tracker.record_window("src", "dst", 101, rows_copied=100)
    tracker.record_window("src", "dst", 201, rows_copied=80)

    progress = tracker.get_copy_progress("src", "dst")
    assert progress["next_starting_id"] == 201
    assert progress["windows_completed"] == 2
    assert progress["rows_copied"] == 180


def test_persistence(tmp_path):
    """Test that progress is persisted to disk."""
    state_file = tmp_path / "state.json"

    tracker1 = ProgressTracker(str(state_file))
    tracker1.start_copy("src", "dst", 1, 100, translation_key="x")
    tracker1.record_window("src", "dst", 101, 100)
    tracker1.mark_failed("src", "dst", "connection lost")

    tracker2 = ProgressTracker(str(state_file))
    progress = tracker2.get_copy_progress("src", "dst")
    assert tracker2.next_starting_id("src", "dst") == 101
    assert progress["status"] == "failed"
    assert progress["error"] == "connection lost"
    assert progress["translation_key"] == "x"


def test_restart_keeps_totals(tracker):
    """Test starting the same copy again keeps its counters."""
    tracker.start_copy("src", "dst", 1, 100)
    tracker.record_window("src", "dst", 101, 100)
    tracker.start_copy("src", "dst", 101, 100)

    progress = tracker.get_copy_progress("src", "dst")
    assert progress["rows_copied"] == 100
    assert progress["next_starting_id"] == 101


def test_copies_are_tracked_separately(tracker):
    tracker.start_copy("a", "b", 1, 10)
    tracker.start_copy("c", "d", 5, 10)
    tracker.record_window("a", "b", 11, 10)

    assert tracker.next_starting_id("a", "b") == 11
    assert tracker.next_starting_id("c", "d") == 5


def test_corrupted_state_file(tmp_path):
    state_file = tmp_path / "state.json"
    state_file.write_text("{not json")

    tracker = ProgressTracker(str(state_file))

    assert tracker.get_all_copy_progress() == {}


def test_summary(tracker):
    tracker.start_copy("a", "b", 1, 10)
    tracker.record_window("a", "b", 11, 10)
    tracker.mark_completed("a", "b")
    tracker.start_copy("c", "d", 1, 10)
    tracker.mark_failed("c", "d", "boom")

    summary = tracker.get_summary()
    assert summary["total_copies"] == 2
    assert summary["completed_copies"] == 1
    assert summary["failed_copies"] == 1
    assert summary["rows_copied"] == 10
    assert summary["last_updated"] is not None


def test_reset(tracker, tmp_path):
    tracker.start_copy("src", "dst", 1, 100)

    tracker.reset()

    assert tracker.get_copy_progress("src", "dst") is None
    assert json.loads((tmp_path / "state.json").read_text())["copies"] == {}
