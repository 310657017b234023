"""Local single-slot store for the in-progress workout."""

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from irontrack_mcp.irontrack.models import Workout

logger = logging.getLogger(__name__)

DEFAULT_DRAFT_PATH = Path.home() / ".irontrack" / "active_workout.json"


class DraftStore:
    """Keeps at most one active workout as a JSON file.

    Writes replace the whole file atomically. Two processes sharing the same
    path race and the last writer wins.
    """

    def __init__(self, path: str | os.PathLike | None = None):
        if path is None:
            path = os.environ.get("IRONTRACK_DRAFT_PATH") or DEFAULT_DRAFT_PATH
        self.path = Path(path).expanduser()

    def get(self) -> Workout | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        try:
            return Workout.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            logger.warning("Ignoring unreadable draft at %s", self.path)
            return None

    def put(self, workout: Workout) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".draft-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(workout.to_json(), f)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
