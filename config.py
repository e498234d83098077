"""
Configuration management for the agent tools service.

Loads environment variables from .env file and provides typed access to configuration.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class Config:
    """Configuration class for the agent tools service."""

    # Agent API Configuration
    AGENT_PORT = int(os.getenv("AGENT_PORT", "8000"))
    AGENT_MAX_TOOL_CALLS = int(os.getenv("AGENT_MAX_TOOL_CALLS", "3"))

    # LLM Backend Configuration
    LLM_BACKEND = os.getenv("LLM_BACKEND", "stub")
    OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "phi")
    MODEL_TIMEOUT_S = int(os.getenv("MODEL_TIMEOUT_S", "60"))

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Weather API
    WEATHER_API_BASE_URL = os.getenv(
        "WEATHER_API_BASE_URL", "http://t.weather.itboy.net/api/weather/city"
    )
    WEATHER_TIMEOUT_MS = float(os.getenv("WEATHER_TIMEOUT_MS", "30000"))

    # WordPress
    WORDPRESS_URL = os.getenv("WORDPRESS_URL", "")
    WORDPRESS_USERNAME = os.getenv("WORDPRESS_USERNAME", "")
    WORDPRESS_APP_PASSWORD = os.getenv("WORDPRESS_APP_PASSWORD", "")
    WORDPRESS_TIMEOUT_MS = float(os.getenv("WORDPRESS_TIMEOUT_MS", "30000"))

    @classmethod
    def problems(cls) -> List[str]:
        """Configuration problems, empty when everything is usable."""
        problems = []
        if cls.WEATHER_TIMEOUT_MS <= 0:
            problems.append("WEATHER_TIMEOUT_MS must be positive")
        if cls.WORDPRESS_TIMEOUT_MS <= 0:
            problems.append("WORDPRESS_TIMEOUT_MS must be positive")
        if cls.LLM_BACKEND not in ("stub", "ollama"):
            problems.append(f"Unknown LLM_BACKEND: {cls.LLM_BACKEND}")
        if cls.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            problems.append(f"Unknown LOG_LEVEL: {cls.LOG_LEVEL}")
        if cls.AGENT_MAX_TOOL_CALLS < 0:
            problems.append("AGENT_MAX_TOOL_CALLS must not be negative")
        return problems

    @classmethod
    def validate(cls) -> bool:
        """Validate that configuration is usable."""
        problems = cls.problems()

        if problems:
            print(f"⚠️  Configuration problems: {'; '.join(problems)}")
            print("   Please fix them in .env file")
            return False

        return True

    @classmethod
    def wordpress_configured(cls) -> bool:
        return bool(cls.WORDPRESS_URL and cls.WORDPRESS_USERNAME and cls.WORDPRESS_APP_PASSWORD)


if __name__ == "__main__":
    # Test configuration loading
    print("Configuration loaded:")
    print(f"  Agent Port: {Config.AGENT_PORT}")
    print(f"  LLM Backend: {Config.LLM_BACKEND}")
    print(f"  Weather API: {Config.WEATHER_API_BASE_URL} ({Config.WEATHER_TIMEOUT_MS}ms)")
    print(f"  WordPress: {'✓ Set' if Config.wordpress_configured() else '✗ Missing'}")
    print(f"  Environment: {Config.ENVIRONMENT}")
    print(f"\n  Validation: {'✓ PASSED' if Config.validate() else '✗ FAILED'}")
