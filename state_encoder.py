# state_encoder.py
# Board -> StateKey. Keys are stored in the value table, so the format is part of the on-disk contract.

import numpy as np

from data_structures import StateKey

CELL_SEPARATOR = ","
ROW_SEPARATOR = ";"


def encode_state(board) -> StateKey:
    """Row-major cell values, cells joined by ',' and rows by ';'."""
    return StateKey(ROW_SEPARATOR.join(
        CELL_SEPARATOR.join(str(int(v)) for v in row) for row in board
    ))


def decode_state(key: StateKey):
    """Inverse of encode_state, for inspecting stored values."""
    rows = [[int(v) for v in row.split(CELL_SEPARATOR)] for row in key.split(ROW_SEPARATOR)]
    return np.array(rows, dtype=np.int8)
