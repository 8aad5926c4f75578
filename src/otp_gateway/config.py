"""OTP Gateway — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── App ───────────────────────────────────────────────
    app_name: str = "OTP Gateway"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]

    # ── OTP ledger ────────────────────────────────────────
    otp_ttl_seconds: int = 300
    otp_max_attempts: int = 3
    # 0 disables the background sweep; expiry is still enforced on read
    sweep_interval_seconds: float = 0

    # ── Delivery ──────────────────────────────────────────
    delivery_backend: str = "emailjs"  # emailjs | smtp | log
    delivery_timeout_seconds: float = 10.0
    otp_from_name: str = "OTP Verification Service"

    # ── EmailJS ───────────────────────────────────────────
    emailjs_api_url: str = "https://api.emailjs.com/api/v1.0/email/send"
    emailjs_public_key: str = ""
    emailjs_private_key: str = ""
    emailjs_service_id: str = ""
    emailjs_template_id: str = ""

    # ── SMTP ──────────────────────────────────────────────
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_start_tls: bool = True
    email_from: str = "no-reply@example.com"
    otp_subject: str = "Your verification code"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
