# config.py
import json
import logging
import os

from errors import ConfigError

logger = logging.getLogger("Config")

# Opponent mixture is partitioned in exactly this order. Whatever the ratios leave
# over goes to the default opponent.
OPPONENT_RATIO_ORDER = ("heuristic", "heuristic_variant", "random")
DEFAULT_OPPONENT = "random"


class Config:
    def __init__(self):
        # ================================================================
        #                      Storage
        # ================================================================
        self.DB_PATH = "othello_qvalues.db"
        self.SESSION_FILE = "training_session.json"

        # ================================================================
        #                      Q-learning
        # ================================================================
        self.LEARNING_RATE = 0.1
        self.DISCOUNT_FACTOR = 0.9
        self.EPSILON = 0.1
        # Multiplied in on every win. Its reciprocal is applied on a loss or draw.
        self.EPSILON_DECAY_RATE = 0.999
        self.EPSILON_FLOOR = 0.01

        self.REPLAY_BUFFER_SIZE = 10000
        self.BATCH_SIZE = 32

        # Applied only when facing the heuristic opponent.
        self.LEARNING_RATE_MULTIPLIER_FOR_SIMPLE_AI = 0.5

        # ================================================================
        #                      Reward shaping
        # ================================================================
        self.INTERMEDIATE_REWARD_SCALE = 0.1
        self.CORNER_WEIGHT = 10.0
        self.LEGAL_MOVE_WEIGHT = 1.0

        # ================================================================
        #                      Training schedule
        # ================================================================
        self.NUM_GAMES = 10000
        self.SAVE_INTERVAL = 100
        self.RANDOM_OPPONENT_GAMES = 1000
        self.OPPONENT_RATIOS = {
            'heuristic': 0.3,
            'heuristic_variant': 0.3,
            'random': 0.4,
        }

        # ================================================================
        #                      Logging
        # ================================================================
        self.LOG_FILE = "outputs/training.log"
        self.GAME_LOG_FILE = "outputs/training_games.log"
        self.TENSORBOARD_DIR = "outputs/logs"

    # (section, json key, attribute, type, required)
    _FIELDS = [
        ("reinforcementLearning", "dbPath", "DB_PATH", str, False),
        ("reinforcementLearning", "learningRate", "LEARNING_RATE", float, True),
        ("reinforcementLearning", "discountFactor", "DISCOUNT_FACTOR", float, True),
        ("reinforcementLearning", "epsilon", "EPSILON", float, True),
        ("reinforcementLearning", "epsilonDecayRate", "EPSILON_DECAY_RATE", float, True),
        ("reinforcementLearning", "intermediateRewardScale", "INTERMEDIATE_REWARD_SCALE", float, True),
        ("reinforcementLearning", "cornerWeight", "CORNER_WEIGHT", float, True),
        ("reinforcementLearning", "legalMoveWeight", "LEGAL_MOVE_WEIGHT", float, True),
        ("reinforcementLearning", "replayBufferSize", "REPLAY_BUFFER_SIZE", int, True),
        ("reinforcementLearning", "batchSize", "BATCH_SIZE", int, True),
        ("reinforcementLearning", "learningRateMultiplierForSimpleAI", "LEARNING_RATE_MULTIPLIER_FOR_SIMPLE_AI", float, True),
        ("training", "numGames", "NUM_GAMES", int, True),
        ("training", "randomOpponentGames", "RANDOM_OPPONENT_GAMES", int, True),
        ("training", "opponentRatios", "OPPONENT_RATIOS", dict, True),
        ("trainingSession", "sessionFile", "SESSION_FILE", str, False),
        ("trainingSession", "saveInterval", "SAVE_INTERVAL", int, True),
        ("logging", "logFile", "LOG_FILE", str, False),
        ("logging", "gameLogFile", "GAME_LOG_FILE", str, False),
        ("logging", "tensorboardDir", "TENSORBOARD_DIR", str, False),
    ]

    @classmethod
    def from_file(cls, path):
        """Builds a Config from a JSON settings file. Raises ConfigError on anything unusable."""
        if not os.path.exists(path):
            raise ConfigError("Settings file not found", {"path": path})
        try:
            with open(path, "r", encoding="utf-8") as f:
                settings = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Settings file could not be parsed: {e}", {"path": path}) from e
        return cls.from_dict(settings)

    @classmethod
    def from_dict(cls, settings):
        if not isinstance(settings, dict):
            raise ConfigError("Settings must be a JSON object")
        config = cls()
        for section, key, attr, expected_type, required in cls._FIELDS:
            block = settings.get(section, {})
            if not isinstance(block, dict):
                raise ConfigError("Settings section must be an object", {"section": section})
            if key not in block:
                if required:
                    raise ConfigError("Required option is missing", {"option": f"{section}.{key}"})
                continue
            setattr(config, attr, _coerce(block[key], expected_type, f"{section}.{key}"))
        config.validate()
        return config

    def validate(self):
        def check(condition, option, message):
            if not condition:
                raise ConfigError(message, {"option": option, "value": getattr(self, option)})

        check(0.0 < self.LEARNING_RATE <= 1.0, "LEARNING_RATE", "learning rate must be in (0, 1]")
        check(0.0 <= self.DISCOUNT_FACTOR <= 1.0, "DISCOUNT_FACTOR", "discount factor must be in [0, 1]")
        check(0.0 <= self.EPSILON <= 1.0, "EPSILON", "epsilon must be in [0, 1]")
        check(0.0 < self.EPSILON_DECAY_RATE <= 1.0, "EPSILON_DECAY_RATE", "epsilon decay rate must be in (0, 1]")
        check(self.LEARNING_RATE_MULTIPLIER_FOR_SIMPLE_AI > 0.0, "LEARNING_RATE_MULTIPLIER_FOR_SIMPLE_AI",
              "learning rate multiplier must be positive")
        check(self.REPLAY_BUFFER_SIZE > 0, "REPLAY_BUFFER_SIZE", "replay buffer size must be positive")
        check(self.BATCH_SIZE > 0, "BATCH_SIZE", "batch size must be positive")
        check(self.NUM_GAMES > 0, "NUM_GAMES", "number of games must be positive")
        check(self.SAVE_INTERVAL > 0, "SAVE_INTERVAL", "save interval must be positive")
        check(self.RANDOM_OPPONENT_GAMES >= 0, "RANDOM_OPPONENT_GAMES", "random opponent games cannot be negative")

        for name, ratio in self.OPPONENT_RATIOS.items():
            if name not in OPPONENT_RATIO_ORDER:
                raise ConfigError("Unknown opponent in ratios", {"opponent": name})
            if isinstance(ratio, bool) or not isinstance(ratio, (int, float)) or not 0.0 <= ratio <= 1.0:
                raise ConfigError("Opponent ratio must be a number in [0, 1]", {"opponent": name, "value": ratio})
        check(sum(self.OPPONENT_RATIOS.values()) <= 1.0 + 1e-9, "OPPONENT_RATIOS",
              "opponent ratios must sum to at most 1")

        if self.BATCH_SIZE > self.REPLAY_BUFFER_SIZE:
            logger.warning(f"Batch size {self.BATCH_SIZE} exceeds replay buffer size {self.REPLAY_BUFFER_SIZE}; "
                           f"batch updates will never run.")
        return self


def _coerce(value, expected_type, option):
    # bool is an int subclass; JSON true/false is never a valid number here.
    if isinstance(value, bool):
        raise ConfigError("Option has the wrong type", {"option": option, "value": value})
    if expected_type is float and isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, expected_type):
        return value
    raise ConfigError(f"Option must be of type {expected_type.__name__}", {"option": option, "value": value})
