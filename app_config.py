"""
Application Configuration - Central place for app identity
Change these values when renaming the application
"""

# Application Identity
APP_NAME = "FocusConsole"
APP_DISPLAY_NAME = "Focus Console"
APP_SUBTITLE = "Industrial camera focus assistant"
APP_DESCRIPTION = "Live focus/exposure scoring for calibration targets"

# Directory names (used for AppData paths)
APP_DATA_FOLDER = APP_NAME  # %LOCALAPPDATA%\{APP_DATA_FOLDER}

# File names
MAIN_CONFIG_FILE = "config.json"
LOG_FILE = "focus_console.log"


def get_window_title(version: str = None) -> str:
    """Get formatted window title with optional version"""
    if version:
        return f"{APP_DISPLAY_NAME} v{version}"
    return APP_DISPLAY_NAME
