from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "TenQ Question Admin"
    debug: bool = False

    # Supabase
    supabase_url: str = ""
    supabase_service_key: str = ""

    # Which document store backs the pipeline: "supabase" or "memory" (local dev)
    store_backend: str = "supabase"

    # OpenAI (default provider, better factual accuracy)
    openai_api_key: str = ""

    # Gemini
    gemini_api_key: str = ""
    llm_provider: str = "openai"
    llm_model: str = "gpt-4o"

    # Permissions
    admin_emails: list[str] = []
    permission_cache_ttl_seconds: int = 300

    # Daily sets
    questions_per_day: int = 10
    slot_search_days: int = 365
    timezone: str = "UTC"

    # CORS
    frontend_url: str = "http://localhost:5173"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
