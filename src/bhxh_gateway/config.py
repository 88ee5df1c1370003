from pydantic import Field
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    debug: bool = False
    base_url: str = "https://dichvucong.baohiemxahoi.gov.vn"
    # Default portal account, used when a request carries no X-Username/X-Password headers
    username: str | None = None
    password: str | None = None
    encryption_key: str = "S6|d'qc1GG,'rx&xn0XC"  # Static key shared with the portal's web client
    target_unit_code: str | None = None  # Preferred unit (Ma / MaSoBHXH / MaDonVi) when the account has several
    captcha_endpoint: str = "http://localhost:4000/api/v1/captcha/solve"
    captcha_api_key: str | None = None
    captcha_provider: str = "gemini"
    captcha_timeout: int = 30  # Seconds the solver may spend on one image
    max_captcha_retries: int = Field(3, ge=1)
    session_ttl_seconds: int = Field(3600, ge=1)  # Upper bound for session lifetime, regardless of portal expires_in
    request_timeout: float = 15.0  # Per-request timeout for portal calls
    proxy_url: str | None = None  # Forward proxy for portal traffic, e.g. http://proxy.example.com:8080
    proxy_username: str | None = None
    proxy_password: str | None = None
    verify_tls: bool = True  # The portal occasionally serves a chain that fails strict verification
    redis_url: str | None = None  # When set, sessions are cached in Redis instead of process memory
    redis_key_prefix: str = "bhxh:session:"
    api_keys: list[str] = []  # Accepted X-API-Key values; empty disables the check
    cors_origins: list[str] = []

    model_config = {
        "env_file": [".env"],
        "env_prefix": "BHXH_",
        "extra": "ignore",
    }
