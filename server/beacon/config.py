from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database (SQLite by default, conversion history only)
    database_url: str = "sqlite+aiosqlite:///./beacon.db"

    # LLM provider keys (any subset may be set)
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    gemini_api_key: str = ""

    # Which provider drives slide synthesis: "openai", "anthropic" or "gemini"
    llm_provider: str = "openai"
    # Empty string uses the provider's default model
    llm_model: str = ""

    # Describe extracted images with the provider's vision endpoint
    vision_enabled: bool = True
    vision_delay: float = 0.2

    # Upload limits
    max_upload_mb: int = 25
    chunk_size_bytes: int = 4 * 1024 * 1024
    chunk_session_ttl: int = 300

    # numSlides clamp range and default shown to clients
    min_slides: int = 5
    max_slides: int = 50
    default_slides: int = 20

    # Cap for decks produced without an exact slide count
    max_deck_slides: int = 50

    # Text extraction
    min_text_chars: int = 100
    ai_text_budget: int = 12000
    ocr_max_pages: int = 20
    ocr_language: str = "eng"
    parser_retry_delay: float = 0.3

    # App
    cors_origins: list[str] = ["http://localhost:3000"]
    debug: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


settings = Settings()
