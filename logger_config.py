# logger_config.py
import logging
import os
import sys

LOG_FORMAT = '%(asctime)s - %(name)-12s - %(levelname)-8s - %(message)s'
GAME_LOG_NAME = "GameLog"


def _ensure_parent(path):
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def setup_logging(log_file: str, game_log_file: str = None, console: bool = False, level=logging.INFO):
    """
    Routes the root logger to an append-mode file. The per-game result log gets its
    own handler and does not propagate, so it stays one line per finished game.
    """
    _ensure_parent(log_file)
    handlers = [logging.FileHandler(log_file, mode='a', encoding='utf-8')]
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    root = logging.getLogger()
    if root.hasHandlers():
        root.handlers.clear()
    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)

    game_logger = logging.getLogger(GAME_LOG_NAME)
    game_logger.handlers.clear()
    if game_log_file:
        _ensure_parent(game_log_file)
        game_handler = logging.FileHandler(game_log_file, mode='a', encoding='utf-8')
        game_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S'))
        game_logger.addHandler(game_handler)
        game_logger.propagate = False
    else:
        game_logger.propagate = True
    game_logger.setLevel(logging.INFO)
    return root


def get_game_logger():
    return logging.getLogger(GAME_LOG_NAME)
