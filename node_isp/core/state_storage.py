"""State storage manager for persisting the desired service set between restarts."""
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..models.state import ManagerState
from ..services.exceptions import StateError
from .constants import STATE_FILE_NAME

logger = logging.getLogger(__name__)


class StateStorageManager:
    """Reads and writes the manager snapshot at ``<data_dir>/state.json``."""

    def __init__(self, data_dir: Path):
        """Initialize state storage manager.

        Args:
            data_dir: The Node ISP data directory
        """
        self.data_dir = Path(data_dir)
        self.state_file = self.data_dir / STATE_FILE_NAME

    def save(self, state: ManagerState) -> None:
        """Write the snapshot to disk, replacing any previous one.

        Raises:
            StateError: If the file cannot be written
        """
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            self.state_file.write_text(state.model_dump_json(indent=2))
        except OSError as e:
            raise StateError(f"Failed to write state file {self.state_file}: {e}") from e
        logger.debug(f"stored state for {len(state.services)} service(s) in {self.state_file}")

    def load(self) -> Optional[ManagerState]:
        """Load the snapshot from disk.

        Returns:
            The stored state, or None if no state has been written yet

        Raises:
            StateError: If the file exists but cannot be read or parsed
        """
        if not self.state_file.exists():
            return None

        try:
            data = json.loads(self.state_file.read_text())
            return ManagerState.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise StateError(f"Invalid state file {self.state_file}: {e}") from e
