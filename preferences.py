"""Display preferences (language, theme, dark mode) persisted as JSON."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Literal, Union

from pydantic import ValidationError

from schemas import CamelModel

logger = logging.getLogger(__name__)

Language = Literal["en", "pt", "es", "nl", "pap"]
Theme = Literal["caribbean", "tropical", "sunset"]


class Preferences(CamelModel):
    language: Language = "en"
    theme: Theme = "caribbean"
    dark_mode: bool = False


def toggle_dark_mode(prefs: Preferences) -> Preferences:
    return prefs.model_copy(update={"dark_mode": not prefs.dark_mode})


def load_preferences(path: Union[str, Path]) -> Preferences:
    """Read saved preferences, falling back to defaults on any problem."""
    path = Path(path)
    if not path.exists():
        return Preferences()
    try:
        return Preferences.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        logger.warning("Ignoring unreadable preferences at %s: %s", path, exc)
        return Preferences()


def save_preferences(prefs: Preferences, path: Union[str, Path]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".prefs-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(prefs.model_dump_json(by_alias=True))
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info("Saved preferences to %s", path)
