"""
config.py — Runtime configuration for the Checkout Service

Settings are read from environment variables. A `.env` file in the working
directory is loaded first (python-dotenv) without overriding variables that
are already set in the process environment.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv(override=False)


def _clean_env(value) -> str:
    """Strips whitespace and surrounding quotes; never returns None."""
    return (value or "").strip().strip("'").strip('"')


def _env(name: str, default: str = "") -> str:
    return _clean_env(os.environ.get(name)) or default


@dataclass(frozen=True)
class Settings:
    """
    Immutable snapshot of the service configuration.

    Attributes:
        razorpay_key_id (str): Public Razorpay key id (basic-auth user).
        razorpay_key_secret (str): Razorpay secret, also the HMAC key for
            payment signatures. Never sent to clients.
        razorpay_api_url (str): Base URL of the Razorpay REST API.
        shiprocket_email (str): Shiprocket API user.
        shiprocket_password (str): Shiprocket API password.
        shiprocket_api_url (str): Base URL of the Shiprocket REST API.
        shiprocket_token_ttl (float): Seconds a Shiprocket token is reused.
        resend_api_key (str): Resend API key for newsletter delivery.
        resend_api_url (str): Base URL of the Resend REST API.
        newsletter_from (str): Sender address for newsletters.
        default_currency (str): Currency used when a request omits it.
        http_timeout (float): Timeout (seconds) for outbound HTTP calls.
        cors_origins (tuple): Allowed CORS origins.
        log_file (str): Optional log file path.
        api_port (int): Port used when the service is started directly.
    """
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_api_url: str = "https://api.razorpay.com"
    shiprocket_email: str = ""
    shiprocket_password: str = ""
    shiprocket_api_url: str = "https://apiv2.shiprocket.in"
    shiprocket_token_ttl: float = 9 * 24 * 3600
    resend_api_key: str = ""
    resend_api_url: str = "https://api.resend.com"
    newsletter_from: str = "Newsletter <newsletter@example.com>"
    default_currency: str = "INR"
    http_timeout: float = 10.0
    cors_origins: tuple = ("*",)
    log_file: str = ""
    api_port: int = 3001

    @property
    def payment_gateway_configured(self) -> bool:
        return bool(self.razorpay_key_id and self.razorpay_key_secret)

    @property
    def courier_configured(self) -> bool:
        return bool(self.shiprocket_email and self.shiprocket_password)

    @property
    def mailer_configured(self) -> bool:
        return bool(self.resend_api_key)


def load_settings() -> Settings:
    """Builds a Settings instance from the current process environment."""
    origins = tuple(o.strip() for o in _env("CORS_ORIGINS", "*").split(",") if o.strip())
    return Settings(
        razorpay_key_id=_env("RAZORPAY_KEY_ID") or _env("VITE_RAZORPAY_KEY_ID"),
        razorpay_key_secret=_env("RAZORPAY_KEY_SECRET"),
        razorpay_api_url=_env("RAZORPAY_API_URL", Settings.razorpay_api_url).rstrip("/"),
        shiprocket_email=_env("SHIPROCKET_EMAIL"),
        shiprocket_password=_env("SHIPROCKET_PASSWORD"),
        shiprocket_api_url=_env("SHIPROCKET_API_URL", Settings.shiprocket_api_url).rstrip("/"),
        shiprocket_token_ttl=float(_env("SHIPROCKET_TOKEN_TTL", str(Settings.shiprocket_token_ttl))),
        resend_api_key=_env("RESEND_API_KEY"),
        resend_api_url=_env("RESEND_API_URL", Settings.resend_api_url).rstrip("/"),
        newsletter_from=_env("NEWSLETTER_FROM", Settings.newsletter_from),
        default_currency=_env("DEFAULT_CURRENCY", Settings.default_currency).upper(),
        http_timeout=float(_env("HTTP_TIMEOUT", str(Settings.http_timeout))),
        cors_origins=origins or ("*",),
        log_file=_env("LOG_FILE"),
        api_port=int(_env("API_PORT", str(Settings.api_port))),
    )


@lru_cache()
def get_settings() -> Settings:
    """Returns the process-wide settings (read once, then cached)."""
    return load_settings()
