"""
Configuration management for Focus Console
"""
import copy
import json
import os

from app_config import MAIN_CONFIG_FILE
from utils_paths import get_app_data_dir

DEFAULT_CONFIG = {
    # Window settings
    "window_geometry": "1440x900",

    # Focus evaluation cadence and session retention.
    # Scoring weights and normalisation ranges are fixed in services/focus/evaluator.py
    "focus": {
        "throttle_ms": 140,    # Minimum gap between fresh evaluations of the live stream
        "history_limit": 40,   # Samples kept in the session history table
    },

    # Folder replay (stands in for a live camera)
    "replay": {
        "directory": "",
        "interval_ms": 100,
        "loop": True,
        "extensions": [".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff"],
    },

    # Logging
    "log_level": "INFO",
}


class Config:
    def __init__(self, config_path=None):
        # Store config in user data directory
        if config_path is None:
            config_path = os.path.join(get_app_data_dir(), MAIN_CONFIG_FILE)

        self.config_path = config_path
        self.data = self.load()

    def load(self):
        """Load configuration from JSON file or return defaults"""
        config = copy.deepcopy(DEFAULT_CONFIG)
        if not os.path.exists(self.config_path):
            return config

        try:
            with open(self.config_path, 'r') as f:
                loaded = json.load(f)
        except (OSError, ValueError) as e:
            from services.logger import app_logger
            app_logger.warning(f"Error loading config {self.config_path}, using defaults: {e}")
            return config

        if not isinstance(loaded, dict):
            return config

        # Deep merge for nested configs like focus, replay
        for key, value in loaded.items():
            if isinstance(value, dict) and isinstance(config.get(key), dict):
                config[key].update(value)
            else:
                config[key] = value

        return config

    def save(self):
        """Save current configuration to JSON file"""
        try:
            directory = os.path.dirname(self.config_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
            return True
        except OSError as e:
            from services.logger import app_logger
            app_logger.error(f"Error saving config: {e}")
            return False

    def get(self, key, default=None):
        """Get configuration value"""
        return self.data.get(key, default)

    def set(self, key, value):
        """Set configuration value"""
        self.data[key] = value

    def get_section(self, key):
        """Get a nested section merged over its defaults"""
        section = copy.deepcopy(DEFAULT_CONFIG.get(key, {}))
        section.update(self.data.get(key) or {})
        return section

    @property
    def throttle_seconds(self):
        return float(self.get_section('focus')['throttle_ms']) / 1000.0

    @property
    def history_limit(self):
        return int(self.get_section('focus')['history_limit'])
