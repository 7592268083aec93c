# utils.py

import json
import os
import tempfile
from datetime import datetime

import numpy as np


def convert_to_json_serializable(obj):
    """Recursively converts objects to be JSON serializable."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, tuple) and hasattr(obj, '_fields'): # namedtuple
        return {field: convert_to_json_serializable(getattr(obj, field)) for field in obj._fields}
    if isinstance(obj, (list, tuple)):
        return [convert_to_json_serializable(item) for item in obj]
    if isinstance(obj, dict):
        return {key: convert_to_json_serializable(value) for key, value in obj.items()}
    return obj


def atomic_write_json(path, payload, indent=2):
    """
    Writes `payload` as JSON to a temp file in the same directory, then renames it
    over `path`. A crash leaves either the old file or the new one, never half of one.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(convert_to_json_serializable(payload), f, indent=indent)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
