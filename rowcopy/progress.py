"""Progress tracking and resume capability for table copies."""
import json
from pathlib import Path
from typing import Dict, Optional, Any
from datetime import datetime


def copy_key(source_table: str, destination_table: str) -> str:
    """State file key for a source/destination pair."""
    return f"{source_table}->{destination_table}"


class ProgressTracker:
    """Record the last completed id window of each copy so it can be resumed."""

    def __init__(self, state_file: str):
        """
        Initialize progress tracker.

        Args:
            state_file: Path to JSON file for storing progress state
        """
        self.state_file = Path(state_file)
        self.state: Dict[str, Any] = self._empty_state()

        if self.state_file.exists():
            self._load()

    @staticmethod
    def _empty_state() -> Dict[str, Any]:
        return {
            "copies": {},
            "last_updated": None,
        }

    def _load(self):
        """Load progress state from file."""
        try:
            with open(self.state_file, 'r') as f:
                self.state = json.load(f)
        except (json.JSONDecodeError, IOError):
            # A corrupted state file is treated as empty
            self.state = self._empty_state()
        self.state.setdefault("copies", {})

    def save(self):
        """Save current progress state to file."""
        self.state["last_updated"] = datetime.now().isoformat()

        self.state_file.parent.mkdir(parents=True, exist_ok=True)

        with open(self.state_file, 'w') as f:
            json.dump(self.state, f, indent=2)

    def start_copy(self, source_table: str, destination_table: str, starting_id: int,
                   chunk_size: int, id_column: str = "id",
                   translation_key: Optional[str] = None):
        """
        Record the start of a copy run.

        Args:
            source_table: Table copied from
            destination_table: Table copied to
            starting_id: First id of the run
            chunk_size: Window size of the run
            id_column: Id column used for windows
            translation_key: Optional translation mapping key
        """
        key = copy_key(source_table, destination_table)
        entry = self.state["copies"].get(key, {})
        entry.update({
            "source_table": source_table,
            "destination_table": destination_table,
            "id_column": id_column,
            "chunk_size": chunk_size,
            "translation_key": translation_key,
            "status": "running",
            "next_starting_id": starting_id,
            "error": None,
            "started_at": datetime.now().isoformat(),
        })
        entry.setdefault("windows_completed", 0)
        entry.setdefault("rows_copied", 0)
        self.state["copies"][key] = entry
        self.save()

    def record_window(self, source_table: str, destination_table: str,
                      window_end: int, rows_copied: int = 0):
        """
        Record a completed window.

        Args:
            source_table: Table copied from
            destination_table: Table copied to
            window_end: Exclusive end of the completed window
            rows_copied: Rows inserted by the window
        """
        entry = self.state["copies"].setdefault(copy_key(source_table, destination_table), {
            "source_table": source_table,
            "destination_table": destination_table,
            "windows_completed": 0,
            "rows_copied": 0,
        })
        entry["next_starting_id"] = window_end
        entry["windows_completed"] = entry.get("windows_completed", 0) + 1
        entry["rows_copied"] = entry.get("rows_copied", 0) + rows_copied
        entry["last_updated"] = datetime.now().isoformat()
        self.save()

    def mark_completed(self, source_table: str, destination_table: str):
        """Mark a copy as finished."""
        self._set_status(source_table, destination_table, "completed")

    def mark_failed(self, source_table: str, destination_table: str, error: str):
        """Mark a copy as failed, keeping its resume point."""
        self._set_status(source_table, destination_table, "failed", error)

    def _set_status(self, source_table: str, destination_table: str, status: str,
                    error: Optional[str] = None):
        entry = self.state["copies"].get(copy_key(source_table, destination_table))
        if entry is None:
            return
        entry["status"] = status
        entry["error"] = error
        self.save()

    def get_copy_progress(self, source_table: str, destination_table: str) -> Optional[Dict[str, Any]]:
        """
        Get progress for a copy.

        Returns:
            Dictionary with progress info or None if the copy was never recorded
        """
        return self.state["copies"].get(copy_key(source_table, destination_table))

    def next_starting_id(self, source_table: str, destination_table: str) -> Optional[int]:
        """
        Get the id a resumed copy should start from.

        Returns:
            End of the last completed window, or None if unknown
        """
        entry = self.get_copy_progress(source_table, destination_table)
        if not entry:
            return None
        return entry.get("next_starting_id")

    def get_all_copy_progress(self) -> Dict[str, Dict[str, Any]]:
        """Get progress for all recorded copies."""
        return self.state["copies"]

    def reset(self):
        """Reset all progress state."""
        self.state = self._empty_state()
        self.save()

    def get_summary(self) -> Dict[str, Any]:
        """
        Get summary of recorded copies.

        Returns:
            Dictionary with summary statistics
        """
        copies = self.state["copies"].values()
        return {
            "total_copies": len(self.state["copies"]),
            "completed_copies": sum(1 for c in copies if c.get("status") == "completed"),
            "failed_copies": sum(1 for c in copies if c.get("status") == "failed"),
            "rows_copied": sum(c.get("rows_copied", 0) for c in copies),
            "last_updated": self.state["last_updated"],
        }
