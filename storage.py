import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """The backing JSON file could not be read or written."""


def load_records(path: str) -> Optional[List[Dict[str, Any]]]:
    """Read the JSON array stored at ``path``.

    Returns None when the file does not exist. Any read or parse problem is
    raised as PersistenceError.
    """
    data_path = Path(path)
    if not data_path.exists():
        return None
    try:
        with data_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise PersistenceError(f"Could not read {data_path}: {e}") from e
    if not isinstance(data, list):
        raise PersistenceError(f"Could not read {data_path}: expected a JSON array")
    return data


def save_records(path: str, records: List[Dict[str, Any]]) -> None:
    """Overwrite ``path`` with ``records``.

    The data goes to a temporary file in the same directory first and is then
    moved over the target, so readers never see a half-written file.
    """
    data_path = Path(path)
    directory = data_path.parent
    tmp_name = None
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{data_path.name}.", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_name, data_path)
        tmp_name = None
    except (OSError, TypeError, ValueError) as e:
        raise PersistenceError(f"Could not write {data_path}: {e}") from e
    finally:
        if tmp_name and os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                logger.warning("Could not remove temporary file %s", tmp_name)
    logger.info("Saved %d records to %s", len(records), data_path)
