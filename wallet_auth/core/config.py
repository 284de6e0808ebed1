from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()

class Settings(BaseSettings):
    PROJECT_NAME: str = "WalletAuth"
    # Application settings
    PORT: int = 8000
    HOST: str = "127.0.0.1"
    VERSION: str = "0.1.0"
    DOC_PASSWORD: str | None = None
    CORS_ORIGINS: str = "*"  # comma separated
    LOG_LEVEL: str = "INFO"

    # SSL settings
    SSL_KEY: str | None = None
    SSL_CERT: str | None = None

    # Login configuration
    ENCODE_KEY: str | None = None
    ENCODE_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 7 * 24 * 60 * 60  # 7 days
    NONCE_EXPIRY_SECONDS: int = 300  # 5 minutes
    NONCE_SWEEP_THRESHOLD: int = 10_000

    # Session cookie
    AUTH_COOKIE_NAME: str = "auth_token"
    COOKIE_SECURE: bool = True

    # Domain embedded in the challenge message, request host when unset
    AUTH_DOMAIN: str | None = None
    # Report nonce mismatch and bad signature as one generic failure
    GENERIC_VERIFY_ERRORS: bool = False

    # Debug settings
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

# Instantiate the settings
settings = Settings()
