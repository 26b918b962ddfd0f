from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Load env values for components that read os.environ directly (e.g., the LLM client).
_project_root = Path(__file__).resolve().parents[1]
load_dotenv(_project_root / ".env", override=False)
# Optional local override (gitignored) used in dev to keep secrets out of the shared env file.
load_dotenv(_project_root / ".env.local", override=False)


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"

    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_POOL_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30

    BACKEND_CORS_ORIGINS: Annotated[list[str], NoDecode] = ["http://localhost:3000"]
    SITE_URL: str = "http://localhost:3000"

    SUPABASE_URL: str | None = None
    SUPABASE_JWT_SECRET: str | None = None
    SUPABASE_JWT_AUDIENCE: str = "authenticated"

    OPENROUTER_API_KEY: str | None = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_APP_TITLE: str = "Anything - Business OS"
    LLM_DEFAULT_MODEL: str = "anthropic/claude-3.5-sonnet"
    LLM_VISION_MODEL: str = "google/gemini-2.0-flash-001"
    LLM_IMAGE_MODEL: str = "google/gemini-2.5-flash-image-preview"
    LLM_REQUEST_TIMEOUT: int = 120
    PROJECT_DEFAULT_MODEL: str = "google/gemini-3-pro-preview"

    SERPAPI_API_KEY: str | None = None
    TAVILY_API_KEY: str | None = None
    SEARCH_TIMEOUT_SECONDS: float = 20.0
    WEBSITE_FETCH_TIMEOUT_SECONDS: float = 10.0

    LANGFUSE_ENABLED: bool = False
    LANGFUSE_PUBLIC_KEY: str | None = None
    LANGFUSE_SECRET_KEY: str | None = None
    LANGFUSE_HOST: str = "https://cloud.langfuse.com"
    LANGFUSE_BASE_URL: str | None = None
    LANGFUSE_ENVIRONMENT: str | None = None
    LANGFUSE_RELEASE: str | None = None
    LANGFUSE_SAMPLE_RATE: float = 1.0
    LANGFUSE_DEBUG: bool = False
    LANGFUSE_REQUIRED: bool = False
    LANGFUSE_AUTH_CHECK: bool = True
    LANGFUSE_TIMEOUT_SECONDS: int = 20

    STRIPE_SECRET_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None
    STRIPE_CREDITS_WEBHOOK_SECRET: str | None = None

    VERCEL_TOKEN: str | None = None
    VERCEL_TEAM_ID: str | None = None
    VERCEL_API_BASE_URL: str = "https://api.vercel.com"
    VERCEL_TIMEOUT_SECONDS: float = 60.0
    PUBLISH_BASE_DOMAIN: str = "vercel.app"

    MEDIA_STORAGE_BUCKET: str = "chat-images"
    MEDIA_STORAGE_ENDPOINT: str | None = None
    MEDIA_STORAGE_REGION: str = "us-east-1"
    MEDIA_STORAGE_ACCESS_KEY: str | None = None
    MEDIA_STORAGE_SECRET_KEY: str | None = None
    # Public object URLs are built as <base>/<bucket>/<key>; for Supabase this is
    # <SUPABASE_URL>/storage/v1/object/public.
    MEDIA_STORAGE_PUBLIC_BASE_URL: str | None = None
    MEDIA_STORAGE_FORCE_PATH_STYLE: bool = True
    UPLOAD_MAX_BYTES: int = 10 * 1024 * 1024

    FREE_TIER_CREDITS: int = 50
    LEAD_PREVIEW_TTL_DAYS: int = 30

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
