from pydantic_settings import BaseSettings


def _split_keys(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseSettings):
    DATABASE_URL: str

    # If DEV and you hit SSL cert issues on Windows, set DB_SSL_VERIFY=false in .env
    DB_SSL_VERIFY: bool = True

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    SESSION_TTL_MINUTES: int = 60 * 24 * 7

    SUPER_ADMIN_EMAIL: str | None = None
    SUPER_ADMIN_PASSWORD: str | None = None
    SUPER_ADMIN_NAME: str | None = "Super Admin"
    ENV: str = "dev"  # "dev" or "prod"

    # --- AUTHZ ROLLOUT ---
    # off | observe | enforce. Anything else falls back to observe.
    AUTHZ_MODE: str = "observe"
    # Comma separated keys, "*" enforces every key of that kind in observe mode
    AUTHZ_ENFORCE_ROUTE_KEYS: str = ""
    AUTHZ_ENFORCE_CAPABILITY_KEYS: str = ""
    AUTHZ_OBSERVE_LOG_DENIES: bool = False

    # --- RATE LIMITING ---
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = "10/minute"
    REDIS_URL: str | None = None

    @property
    def enforce_route_keys(self) -> list[str]:
        return _split_keys(self.AUTHZ_ENFORCE_ROUTE_KEYS)

    @property
    def enforce_capability_keys(self) -> list[str]:
        return _split_keys(self.AUTHZ_ENFORCE_CAPABILITY_KEYS)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
