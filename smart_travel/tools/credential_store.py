from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol
import json
import logging
import os

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRAVEL_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

CREDENTIAL_KEY = "googleMapsApiKey"
DEFAULT_CREDENTIAL_PATH = Path.home() / ".smart_travel" / "credentials.json"


class CredentialStore(Protocol):
    def get(self) -> Optional[str]: ...

    def set(self, value: str) -> None: ...

    def clear(self) -> None: ...


@dataclass
class InMemoryCredentialStore:
    value: Optional[str] = None

    def get(self) -> Optional[str]:
        return self.value

    def set(self, value: str) -> None:
        self.value = value

    def clear(self) -> None:
        self.value = None


class FileCredentialStore:
    """Persist the map credential in a small JSON file keyed by ``CREDENTIAL_KEY``.

    Other keys in the file are preserved on write.
    """

    def __init__(self, path: Optional[Path] = None, *, key: str = CREDENTIAL_KEY):
        raw_path = path or os.getenv("TRAVEL_PLANNER_CREDENTIAL_PATH") or DEFAULT_CREDENTIAL_PATH
        self.path = Path(raw_path).expanduser()
        self.key = key

    def get(self) -> Optional[str]:
        value = self._read().get(self.key)
        return value if isinstance(value, str) and value else None

    def set(self, value: str) -> None:
        data = self._read()
        data[self.key] = value
        self._write(data)

    def clear(self) -> None:
        data = self._read()
        if data.pop(self.key, None) is not None:
            self._write(data)
            logger.info("Cleared stored credential %s", self.key)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError:
            logger.warning("Credential file %s is not valid JSON; ignoring it", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
