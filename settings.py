# settings.py
from pydantic import BaseModel, Field
from dotenv import load_dotenv
import os

# Load variables from .env at import time
load_dotenv()

class Settings(BaseModel):
    ai_api_url: str = Field(default=os.getenv("AI_API_URL", "https://oi-server.onrender.com/chat/completions"))
    ai_api_key: str = Field(default=os.getenv("AI_API_KEY", ""))
    ai_customer_id: str = Field(default=os.getenv("AI_CUSTOMER_ID", ""))
    ai_script_model: str = Field(default=os.getenv("AI_SCRIPT_MODEL", "openrouter/anthropic/claude-sonnet-4"))
    ai_video_model: str = Field(default=os.getenv("AI_VIDEO_MODEL", "replicate/google/veo-3"))
    ai_timeout_sec: float = Field(default=float(os.getenv("AI_TIMEOUT_SEC", "600")))
    video_duration_sec: int = Field(default=int(os.getenv("VIDEO_DURATION_SEC", "30")))

    # client-side polling cadence and safety ceiling
    poll_interval_sec: float = Field(default=float(os.getenv("POLL_INTERVAL_SEC", "3")))
    poll_timeout_sec: float = Field(default=float(os.getenv("POLL_TIMEOUT_SEC", str(15 * 60))))

    # 0 keeps finished sessions forever
    session_ttl_sec: int = Field(default=int(os.getenv("SESSION_TTL_SEC", "3600")))

    public_base_url: str = Field(default=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000"))
    cors_origins: str = Field(default=os.getenv("CORS_ORIGINS", "*"))
    debug: bool = Field(default=os.getenv("DEBUG", "true").lower() in {"1", "true", "yes"})
    log_level: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))

settings = Settings()
