import logging
import os
from dotenv import load_dotenv

from .db import DEFAULT_NAMESPACE
from .host import DisplayMode


class Config:
    def __init__(self) -> None:
        logging.debug("Loading configuration...")
        load_dotenv()
        self.changelog_path = os.getenv("CHANGELOG_PATH", "").strip()
        self.changelog_url = os.getenv("CHANGELOG_URL", "").strip()
        self.database_path = os.getenv("DATABASE_PATH", "data/whatsnew.db")
        self.namespace = os.getenv("WHATSNEW_NAMESPACE", DEFAULT_NAMESPACE)
        self.extension_version = os.getenv("EXTENSION_VERSION", "").strip()
        self.display_mode = os.getenv("DISPLAY_MODE", DisplayMode.IMPORTANT.value).strip().lower()
        self.log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()

        logging.debug(f"Loaded config: path={self.changelog_path or 'bundled'}, url={self.changelog_url or '-'}, display_mode={self.display_mode}")

    def validate(self) -> None:
        problems = []
        if self.display_mode not in {mode.value for mode in DisplayMode}:
            problems.append(f"DISPLAY_MODE must be one of new, important, never (got {self.display_mode!r})")
        if not isinstance(logging.getLevelName(self.log_level), int):
            problems.append(f"LOG_LEVEL is not a logging level: {self.log_level!r}")
        if self.changelog_path and self.changelog_url:
            problems.append("CHANGELOG_PATH and CHANGELOG_URL are mutually exclusive")
        if problems:
            logging.error(f"Invalid configuration: {'; '.join(problems)}")
            raise RuntimeError("Invalid configuration: " + "; ".join(problems))
        logging.debug("Configuration validation passed")

    @property
    def mode(self) -> DisplayMode:
        return DisplayMode(self.display_mode)
