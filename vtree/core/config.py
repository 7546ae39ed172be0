from typing import Any, Optional
import json
import os
from pydantic import BaseModel, Field
from loguru import logger
from .events import Signal

# --- Tree Settings ---
class TreeOptions(BaseModel):
    """
    Defaults applied by the tree model when building nodes.

    Attributes:
        collapse_by_default: ``collapsed`` value for elements that leave it unset.
        auto_expand_single_children: When a node is expanded and its only
            visible child is collapsible and collapsed, expand that child too.
    """
    collapse_by_default: bool = False
    auto_expand_single_children: bool = False

class LoggingSettings(BaseModel):
    debug_mode: bool = True
    log_dir: Optional[str] = None

class AppConfig(BaseModel):
    tree: TreeOptions = Field(default_factory=TreeOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

# --- Manager ---
class ConfigManager:
    """
    Manages configuration with optional persistence and reactivity.

    When ``filepath`` is None the configuration lives in memory only.
    """
    def __init__(self, filepath: Optional[str] = None):
        self.filepath = filepath
        self._data = AppConfig()
        self.on_changed = Signal("ConfigChanged")
        self._load()

    @property
    def data(self) -> AppConfig:
        return self._data

    def update(self, section: str, key: str, value: Any):
        """Update a setting, validate via Pydantic, autosave, and emit change event."""
        if not hasattr(self._data, section):
            raise ValueError(f"Invalid section: {section}")

        section_obj = getattr(self._data, section)
        if not hasattr(section_obj, key):
            raise ValueError(f"Invalid key: {key} in section {section}")

        # Re-validate the whole section so bad types never reach the model
        validated = type(section_obj).model_validate({**section_obj.model_dump(), key: value})
        setattr(self._data, section, validated)
        self._save()
        self.on_changed.emit(section, key, getattr(validated, key))

    def get(self, section: str, key: str) -> Any:
        section_obj = getattr(self._data, section)
        return getattr(section_obj, key)

    def _load(self):
        """Load settings from JSON or TOML file if present; otherwise keep defaults."""
        if not self.filepath:
            return
        if os.path.isfile(self.filepath):
            try:
                if self.filepath.endswith('.toml'):
                    import tomllib
                    with open(self.filepath, "rb") as f:
                        raw = tomllib.load(f)
                else:
                    with open(self.filepath, "r", encoding="utf-8") as f:
                        raw = json.load(f)
                self._data = AppConfig.model_validate(raw)
            except Exception as e:
                logger.error(f"Failed to load config from {self.filepath}: {e}")
                self._save()
        else:
            self._save()

    def _save(self):
        """Persist current config to JSON file."""
        if not self.filepath or self.filepath.endswith('.toml'):
            return
        try:
            dirname = os.path.dirname(self.filepath)
            if dirname:
                os.makedirs(dirname, exist_ok=True)
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._data.model_dump(), f, indent=4)
        except OSError as e:
            logger.error(f"Failed to save config to {self.filepath}: {e}")
