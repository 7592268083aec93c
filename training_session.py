# training_session.py
# Progress record of one training run. The JSON file is the only thing a resume reads.

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from datetime import datetime
from typing import Optional

from errors import SessionError
from utils import atomic_write_json

logger = logging.getLogger("Session")


@dataclass
class TrainingSession:
    total_games: int
    completed_games: int = 0
    wins: int = 0
    opponent_wins: int = 0
    start_time: datetime = None
    last_save_time: Optional[datetime] = None
    agent_name: str = ""
    opponent_name: str = ""

    def __post_init__(self):
        if self.start_time is None:
            self.start_time = datetime.now()
        if not 0 <= self.completed_games <= self.total_games:
            raise SessionError("completed_games must lie in [0, total_games]",
                               {"completed_games": self.completed_games, "total_games": self.total_games})

    @property
    def remaining_games(self):
        return self.total_games - self.completed_games

    def save(self, path):
        self.last_save_time = datetime.now()
        atomic_write_json(path, asdict(self))
        logger.info(f"Session saved to {path} ({self.completed_games}/{self.total_games} games).")

    @classmethod
    def load(cls, path):
        """Returns the persisted session, or None when no session is in progress."""
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            known = {f.name for f in fields(cls)}
            data = {k: v for k, v in raw.items() if k in known}
            for key in ("start_time", "last_save_time"):
                if data.get(key):
                    data[key] = datetime.fromisoformat(data[key])
            return cls(**data)
        except (OSError, ValueError, TypeError) as e:
            raise SessionError(f"Session file is unreadable: {e}", {"path": path}) from e

    @staticmethod
    def exists(path):
        return os.path.exists(path)

    @staticmethod
    def clear(path):
        if os.path.exists(path):
            os.remove(path)
            logger.info(f"Session file {path} removed.")
