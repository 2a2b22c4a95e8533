"""
config.py - Configuration model for Slotfinder
"""

from pathlib import Path
from typing import Dict, Optional
from pydantic import BaseModel, Field, ValidationError
from rich.console import Console
import sys

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

console = Console()


class MatchingConfig(BaseModel):
    """Parameters that control release reconciliation."""

    size_ratio: float = Field(
        default=1.5,
        gt=1.0,
        description="Size ratio at which two otherwise similar releases are both worth keeping"
    )


class TrackerConfig(BaseModel):
    name: str
    url: str
    api_user: str = ""
    api_key: str = ""


class SlotfinderConfig(BaseModel):
    trackers: Dict[str, TrackerConfig] = Field(default_factory=dict)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    config_path: Optional[Path] = None

    def tracker(self, key: str) -> TrackerConfig:
        for name, tracker in self.trackers.items():
            if name.lower() == key.strip().lower():
                return tracker
        raise ValueError(f"Tracker '{key}' is not configured.")


def parse_config(config_data: dict, config_path: Optional[Path] = None) -> SlotfinderConfig:
    return SlotfinderConfig(
        trackers={
            name: TrackerConfig(**tracker_data)
            for name, tracker_data in config_data.get("trackers", {}).items()
        },
        matching=MatchingConfig(**config_data.get("matching", {})),
        config_path=config_path,
    )


def load_config(config_path: Path) -> SlotfinderConfig:
    """Load configuration from TOML file"""

    if not config_path.exists():
        console.print(f"[red][ERROR][/red] Configuration file not found: {config_path}")
        console.print("Please create config.toml with your tracker API credentials")
        sys.exit(1)

    try:
        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)
        return parse_config(config_data, config_path)

    except (OSError, tomllib.TOMLDecodeError, ValidationError, TypeError) as e:
        console.print(f"[red][ERROR][/red] Error loading configuration: {e}")
        sys.exit(1)
