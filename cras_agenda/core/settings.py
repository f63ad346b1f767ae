from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(str, Enum):
    DEV = "dev"
    HML = "hml"
    PROD = "prod"


class Settings(BaseSettings):
    APP_ENV: Env = Env.DEV
    DEBUG: bool = False
    SECRET_KEY: str

    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    # jornada de trabalho: o token de acesso dura um expediente
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    DATABASE_URL: str

    ALLOWED_HOSTS: str = "localhost,127.0.0.1"

    # If True, login will also set HttpOnly cookies (works with frontends that avoid localStorage)  # noqa: E501
    USE_COOKIE_AUTH: bool = True

    # Only set a domain in production (e.g., ".yourdomain.com"). Leave None in dev.
    COOKIE_DOMAIN: str | None = None

    # In prod, keep cookies secure-only
    SECURE_COOKIES: bool = False

    # Fuso usado para interpretar "HH:MM" da agenda e os filtros por dia
    TIMEZONE: str = "America/Sao_Paulo"

    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"

    # Rate limiting (janela fixa, em memória)
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: int = 5
    LOGIN_RATE_WINDOW_SECONDS: int = 15 * 60
    CREATE_RATE_LIMIT: int = 20
    CREATE_RATE_WINDOW_SECONDS: int = 60 * 60
    DELETE_RATE_LIMIT: int = 10
    DELETE_RATE_WINDOW_SECONDS: int = 60 * 60

    EXPORT_MAX_ROWS: int = 10_000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        """ALLOWED_HOSTS aceita hosts com ou sem protocolo; sem protocolo vale http e https."""
        origins: list[str] = []
        for host in (h.strip() for h in self.ALLOWED_HOSTS.split(",")):
            if not host:
                continue
            if host.startswith("http"):
                origins.append(host)
            else:
                origins += [f"http://{host}", f"https://{host}"]
        return origins


# cria instância global
settings = Settings()
