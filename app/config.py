"""
Application Configuration
Load settings from environment variables with validation
"""
import os


class Settings:
    """Application configuration from environment variables"""

    # MongoDB Configuration
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "reply_assistant")
    MONGODB_TLS: bool = os.getenv("MONGODB_TLS", "False").lower() == "true"

    # OpenAI Configuration
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_LLM_MODEL: str = os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini")
    GENERATION_TEMPERATURE: float = float(os.getenv("GENERATION_TEMPERATURE", "0.7"))
    GENERATION_MAX_TOKENS: int = int(os.getenv("GENERATION_MAX_TOKENS", "1000"))

    # Application Configuration
    APP_NAME: str = "Freelancer Reply Assistant"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "True").lower() == "true"

    # API Configuration
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")

    # Template Matching Configuration
    MATCH_CANDIDATE_LIMIT: int = int(os.getenv("MATCH_CANDIDATE_LIMIT", "5"))
    MATCH_MIN_SCORE: float = float(os.getenv("MATCH_MIN_SCORE", "0.3"))
    MATCH_TOP_N: int = int(os.getenv("MATCH_TOP_N", "3"))

    # Refined Response Retrieval Configuration
    SIMILAR_RESPONSES_LIMIT: int = int(os.getenv("SIMILAR_RESPONSES_LIMIT", "2"))
    RECENT_CONVERSATIONS_LIMIT: int = int(os.getenv("RECENT_CONVERSATIONS_LIMIT", "10"))

    # Template Import Configuration
    IMPORT_BATCH_SIZE: int = int(os.getenv("IMPORT_BATCH_SIZE", "5"))
    MAX_FILE_SIZE_MB: int = int(os.getenv("MAX_FILE_SIZE_MB", "5"))

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


# Initialize settings
settings = Settings()


def validate_settings() -> bool:
    """
    Validate that all required settings are configured

    Returns:
        True if all required settings are present

    Raises:
        ValueError: If required settings are missing
    """
    required_keys = {
        "OPENAI_API_KEY": settings.OPENAI_API_KEY,
        "MONGODB_URI": settings.MONGODB_URI,
    }

    missing_keys = [key for key, value in required_keys.items() if not value]
    if missing_keys:
        raise ValueError(f"Missing required environment variables: {', '.join(missing_keys)}")

    return True
