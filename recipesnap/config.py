from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    anthropic_api_key: str = ""

    vision_model: str = "claude-sonnet-4-5-20250929"

    # Response budgets per flow
    identify_max_tokens: int = 512
    recipe_max_tokens: int = 2048

    # Browser session settings
    session_idle_timeout: int = 3600  # 1 hour without a request
    max_sessions: int = 200

    # Upload limits
    max_upload_bytes: int = 10 * 1024 * 1024  # 10 MB

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
