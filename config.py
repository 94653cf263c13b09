import logging
import os
import shutil
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

CONFIG_DIR = Path.home() / ".wordcoach"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

DEFAULT_MAX_CARDS = 20
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_CONFIG_TEXT = f"""[session]
max_cards = {DEFAULT_MAX_CARDS}

[logging]
level = "{DEFAULT_LOG_LEVEL}"
"""


def load_config() -> Dict[str, Any]:
    """Load config from ~/.wordcoach/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        if PROJECT_CONFIG_EXAMPLE.exists():
            shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
        else:
            CONFIG_PATH.write_text(DEFAULT_CONFIG_TEXT, encoding="utf-8")
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    session_cfg = config.get("session", {})
    max_cards = int(os.getenv("WORDCOACH_MAX_CARDS", session_cfg.get("max_cards", DEFAULT_MAX_CARDS)))
    config["session"] = {
        # 0 or less means no cap on the session queue
        "max_cards": max_cards if max_cards > 0 else None,
    }
    logging_cfg = config.get("logging", {})
    level = str(os.getenv("WORDCOACH_LOG_LEVEL", logging_cfg.get("level", DEFAULT_LOG_LEVEL))).upper()
    if not isinstance(logging.getLevelName(level), int):
        level = DEFAULT_LOG_LEVEL
    config["logging"] = {"level": level}
    return config


def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('session', 'max_cards')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value
