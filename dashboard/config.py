import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    MONITOR_API_BASE_URL: str = os.getenv(
        "MONITOR_API_BASE_URL", "http://localhost:8080"
    )
    MONITOR_API_PREFIX: str = os.getenv("MONITOR_API_PREFIX", "/api/v1")
    MONITOR_API_TIMEOUT_SECONDS: float = float(
        os.getenv("MONITOR_API_TIMEOUT_SECONDS", "10")
    )
    AVAILABILITY_STRIP_LIMIT: int = int(os.getenv("AVAILABILITY_STRIP_LIMIT", 60))


settings = Settings()
