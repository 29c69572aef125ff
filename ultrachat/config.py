"""
Configuration management for Ultra Chat
"""
import os
import json
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv(override=True)


class Config:
    """Application configuration"""

    # Project paths
    BASE_DIR = Path(__file__).parent.parent
    CONFIG_DIR = BASE_DIR / "config"
    LOGS_DIR = BASE_DIR / "logs"

    # API access
    GEMINI_API_KEY = (
        os.getenv("GEMINI_API_KEY")
        or os.getenv("GOOGLE_API_KEY")
        or os.getenv("API_KEY", "")
    )
    GEMINI_BASE_URL = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/"
    )

    # Model variants: text turns are multi-turn, image turns are single-turn
    TEXT_MODEL = os.getenv("TEXT_MODEL", "gemini-3-flash-preview")
    VISION_MODEL = os.getenv("VISION_MODEL", "gemini-2.5-flash-image")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Default settings from JSON
    _settings = {}

    @classmethod
    def load_settings(cls):
        """Load settings from JSON file"""
        settings_file = cls.CONFIG_DIR / "settings.json"
        if settings_file.exists():
            with open(settings_file, 'r', encoding='utf-8') as f:
                cls._settings = json.load(f)
        else:
            # Default settings if file doesn't exist
            cls._settings = {
                "chat": {
                    "system_instruction": "You are a helpful and knowledgeable AI assistant.",
                    "temperature": 0.7
                },
                "vision": {
                    "max_size": 2048,
                    "quality": 85
                },
                "gui": {
                    "window_width": 900,
                    "window_height": 700,
                    "appearance": "system"
                }
            }

    @classmethod
    def get(cls, *keys, default=None):
        """Get nested configuration value"""
        if not cls._settings:
            cls.load_settings()

        value = cls._settings
        for key in keys:
            if isinstance(value, dict):
                value = value.get(key, default)
            else:
                return default
        return value

    @classmethod
    def default_settings(cls):
        """Build the chat settings new sessions start with"""
        from ultrachat.models.settings import ChatSettings

        return ChatSettings(
            system_instruction=cls.get(
                "chat", "system_instruction", default=ChatSettings.system_instruction
            ),
            temperature=float(cls.get("chat", "temperature", default=ChatSettings.temperature))
        )

    @classmethod
    def validate(cls):
        """Validate required configuration"""
        errors = []

        if not cls.GEMINI_API_KEY:
            errors.append("Missing GEMINI_API_KEY")

        try:
            temperature = float(cls.get("chat", "temperature", default=0.7))
            if not 0.0 <= temperature <= 2.0:
                errors.append(f"chat.temperature must be between 0 and 2, got {temperature}")
        except (TypeError, ValueError):
            errors.append("chat.temperature must be a number")

        return errors


# Load settings on import
Config.load_settings()
