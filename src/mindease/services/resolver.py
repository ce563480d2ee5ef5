"""Package identifier to display name resolution."""
import json
import logging
from importlib import resources
from pathlib import Path
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)


def load_app_names(path: Optional[Path] = None) -> Dict[str, str]:
    """
    Load the package-id -> display-name table.

    The packaged default table is always loaded; entries from ``path``
    (a JSON object) are merged over it.
    """
    raw = resources.files("mindease").joinpath("data/app_names.json").read_text(encoding="utf-8")
    table = dict(json.loads(raw))

    if path is not None:
        with open(path, encoding="utf-8") as fh:
            extra = json.load(fh)
        if not isinstance(extra, dict):
            raise ValueError(f"{path}: expected a JSON object of package id -> name")
        table.update({str(k): str(v) for k, v in extra.items()})
        logger.info("Loaded %d app names from %s", len(extra), path)

    return table


class AppIdentityResolver:
    """Map raw package identifiers to human-readable app names."""

    def __init__(self, names: Mapping[str, str]):
        self._names = dict(names)

    @classmethod
    def from_config(cls, path: Optional[Path] = None) -> "AppIdentityResolver":
        return cls(load_app_names(path))

    def resolve(self, package_id: str) -> str:
        """Return the display name, or the identifier itself if unmapped."""
        return self._names.get(package_id, package_id)
