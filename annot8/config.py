"""
Engine configuration.

Settings can be built in code, from a dict, or from a JSON file. Unknown keys
are ignored so host pages can share one settings blob with other widgets.
"""

import json
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from annot8.utils.logging_service import get_logger

logger = get_logger(__name__)

# User agents treated as touch devices
MOBILE_USER_AGENT = re.compile(
    r"Android|webOS|iPhone|iPad|iPod|BlackBerry|Windows Phone", re.IGNORECASE
)


def is_mobile_user_agent(user_agent: Optional[str]) -> bool:
    """Check if a user agent string belongs to a mobile device."""
    if not user_agent:
        return False
    return MOBILE_USER_AGENT.search(user_agent) is not None


@dataclass
class Annot8Config:
    """Settings for one engine instance."""

    # Root selectors, tried in order; the first match wins
    selectors: List[str] = field(default_factory=lambda: ["article"])
    mobile: bool = False
    debug: bool = False

    hit_padding: float = 2.0
    # Re-append updated annotations at the end of the list
    move_updated_to_end: bool = False

    selection_debounce_ms: int = 500
    pointer_debounce_ms: int = 50
    resize_debounce_ms: int = 150
    bounds_debounce_ms: int = 50

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Annot8Config":
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in (data or {}).items() if key in known}

        unknown = set(data or {}) - known
        if unknown:
            logger.debug("Ignoring unknown config keys: %s", sorted(unknown))

        if isinstance(values.get("selectors"), str):
            values["selectors"] = [values["selectors"]]

        return cls(**values)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Annot8Config":
        """
        Load configuration from a JSON file.

        A missing or unreadable file yields the defaults.
        """
        path = Path(path)
        if not path.exists():
            logger.info("Config file %s not found, using defaults", path)
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read config %s: %s. Using defaults.", path, e)
            return cls()

        if not isinstance(data, dict):
            logger.warning("Config %s is not a JSON object, using defaults", path)
            return cls()

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
