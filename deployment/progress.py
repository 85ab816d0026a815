import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from deployment.constants import PROGRESS_KEYS
from deployment.errors import ConfigurationError
from deployment.utils import _load_json

ProgressValue = Union[str, bool, int]

STANDARD_PROGRESS_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class ProgressStore:
    """
    Flat record of confirmed deployment artifacts, persisted to a JSON file.

    Every ``set`` is written to a temporary file next to the target and moved
    over it with ``os.replace``, so the file on disk is always either the
    previous or the new complete record.
    """

    def __init__(
        self,
        filepath: Path,
        data: Optional[Dict[str, ProgressValue]] = None,
        allowed_keys: Iterable[str] = PROGRESS_KEYS,
    ):
        self.filepath = Path(filepath)
        self.allowed_keys = frozenset(allowed_keys)
        self._data = dict(data or {})

    @classmethod
    def load(cls, filepath: Path, allowed_keys: Iterable[str] = PROGRESS_KEYS) -> "ProgressStore":
        """Loads the progress file, or starts an empty record if there is none yet."""
        filepath = Path(filepath)
        if not filepath.exists():
            return cls(filepath=filepath, allowed_keys=allowed_keys)

        try:
            data = _load_json(filepath)
        except ValueError as e:
            raise ConfigurationError(f"Progress file {filepath} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Progress file {filepath} does not contain a JSON object.")
        return cls(filepath=filepath, data=data, allowed_keys=allowed_keys)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._data

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __getitem__(self, key: str) -> ProgressValue:
        try:
            return self._data[key]
        except KeyError:
            raise KeyError(f"'{key}' has not been recorded in {self.filepath}") from None

    def set(self, key: str, value: ProgressValue) -> None:
        """Records a confirmed artifact and persists the whole record before returning."""
        if key not in self.allowed_keys:
            raise ValueError(f"Unknown deploy progress key '{key}'.")
        if not isinstance(value, (str, bool, int)):
            raise TypeError(f"Unsupported value type {type(value).__name__} for '{key}'.")
        self._data[key] = value
        self._write()

    def update(self, values: Dict[str, ProgressValue]) -> None:
        for key, value in values.items():
            if key not in self.allowed_keys:
                raise ValueError(f"Unknown deploy progress key '{key}'.")
            if not isinstance(value, (str, bool, int)):
                raise TypeError(f"Unsupported value type {type(value).__name__} for '{key}'.")
        self._data.update(values)
        self._write()

    def keys(self):
        return self._data.keys()

    def as_dict(self) -> Dict[str, ProgressValue]:
        return dict(self._data)

    def _write(self) -> None:
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        temp_filepath = self.filepath.with_suffix(".temp.json")
        with open(temp_filepath, "w") as file:
            json.dump(self._data, file, **STANDARD_PROGRESS_JSON_FORMAT)
            file.flush()
            os.fsync(file.fileno())
        os.replace(temp_filepath, self.filepath)
