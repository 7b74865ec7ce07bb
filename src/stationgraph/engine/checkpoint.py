"""PlayerState checkpoints on disk."""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from stationgraph.models import PlayerState
from stationgraph.observability.logging import get_logger

log = get_logger(__name__)


class CheckpointError(Exception):
    """Raised when a checkpoint can't be read back."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load checkpoint {path}: {reason}")


class CheckpointStore:
    """One JSON file per player in ``directory``.

    Writes go to a temp file that replaces the checkpoint in one step, so a
    checkpoint on disk is always a complete state.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, player_id: str) -> Path:
        return self.directory / f"{player_id}.json"

    def exists(self, player_id: str) -> bool:
        return self.path_for(player_id).exists()

    def save(self, player_id: str, state: PlayerState) -> Path:
        """Write ``state`` atomically and return the checkpoint path."""
        self.directory.mkdir(parents=True, exist_ok=True)
        file_path = self.path_for(player_id)
        tmp_path = file_path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
            tmp_path.replace(file_path)
        except Exception:
            if tmp_path.exists():
                tmp_path.unlink()
            raise
        log.info("checkpoint_saved", player_id=player_id, path=str(file_path))
        return file_path

    def load(self, player_id: str) -> PlayerState:
        """Read a checkpoint.

        Raises:
            CheckpointError: If the file is missing or doesn't validate.
        """
        path = self.path_for(player_id)
        if not path.exists():
            raise CheckpointError(path, "File not found")
        try:
            return PlayerState.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise CheckpointError(path, str(e)) from e

    def delete(self, player_id: str) -> bool:
        """Remove a checkpoint. Returns False if there was none."""
        path = self.path_for(player_id)
        if not path.exists():
            return False
        path.unlink()
        return True
