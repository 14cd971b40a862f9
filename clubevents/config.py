from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "club_events"
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # OpenAI-compatible chat completions API (OpenAI, LM Studio, ...)
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-3.5-turbo"
    llm_api_key: str = ""
    llm_temperature: float = 0.1

    # Cap on the page text sent to the LLM
    content_char_limit: int = 12000

    navigation_timeout_ms: int = 30000
    selector_timeout_ms: int = 10000
    url_timeout_s: float = 120

    # 1 keeps the run sequential on a single browser session
    max_concurrent_urls: int = 1

    # Clubs whose events always use the club banner. JSON list in the env var,
    # e.g. FORCE_DEFAULT_IMAGE_CLUBS='["temp-pm", "temp-bucs"]'
    force_default_image_clubs: list[str] = []

    model_config = {"env_file": ".env"}


settings = Settings()
