import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from dotenv import load_dotenv

from errors import ConfigError
from models import Category, ThresholdPolicy

THRESHOLD = 0.30                  # % change, inclusive
DEFAULT_POLICY = ThresholdPolicy.DOWNSIDE

INDICES = (
    # (label, ticker, category)
    ("Nifty 50",      "^NSEI",    Category.NIFTY50),
    ("Nifty Next 50", "^NSMIDCP", Category.NIFTYNEXT50),
)

NIFTY50_SCHEME_CODES = (
    "151165", "151471", "119648", "153529", "149373",
    "153506", "118482", "152329", "146376", "149250",
    "118581", "153704", "119063", "151157", "120620",
    "153787", "148978", "120307", "152972", "147794",
    "149039", "119288", "118881", "120717", "153906",
)
NIFTYNEXT50_SCHEME_CODES = ("149838",)

TABLE_TITLES = {
    Category.NIFTY50:     "NIFTY 50",
    Category.NIFTYNEXT50: "NIFTY NEXT 50",
}

MFAPI_BASE_URL = "https://api.mfapi.in"
HTTP_TIMEOUT_SECONDS = 15.0
MAX_WORKERS = 8

SMTP_HOST = "smtp.gmail.com"
SMTP_PORT = 587
SMTP_SSL_PORT = 465


@dataclass(frozen=True)
class Settings:
    email_user: str
    email_pass: str
    email_to: str
    email_bcc: str
    smtp_host: str = SMTP_HOST
    smtp_port: int = SMTP_PORT
    smtp_ssl: bool = False
    threshold: float = THRESHOLD
    policy: ThresholdPolicy = DEFAULT_POLICY
    indices: tuple[tuple[str, str, Category], ...] = INDICES
    scheme_codes: Mapping[Category, tuple[str, ...]] | None = None
    mfapi_base_url: str = MFAPI_BASE_URL
    http_timeout: float = HTTP_TIMEOUT_SECONDS
    max_workers: int = MAX_WORKERS
    log_level: str = "INFO"

    def __post_init__(self):
        codes = self.scheme_codes
        if codes is None:
            codes = {
                Category.NIFTY50:     NIFTY50_SCHEME_CODES,
                Category.NIFTYNEXT50: NIFTYNEXT50_SCHEME_CODES,
            }
        object.__setattr__(self, "scheme_codes", MappingProxyType(dict(codes)))


def _split_codes(raw: str | None, default: tuple) -> tuple:
    if not raw:
        return default
    codes = tuple(c.strip() for c in raw.split(",") if c.strip())
    return codes or default


def _parse_float(env: dict, name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def load_settings(env: dict | None = None) -> Settings:
    """
    Build Settings from environment variables.

    When env is None the process environment is used, after loading a .env
    file if one is present. Defaulting: EMAIL_TO falls back to EMAIL_USER,
    EMAIL_BCC falls back to EMAIL_TO.
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    user = env.get("EMAIL_USER", "")
    password = env.get("EMAIL_PASS", "")
    if not user or not password:
        raise ConfigError("EMAIL_USER and EMAIL_PASS must be set")

    to = env.get("EMAIL_TO") or user
    bcc = env.get("EMAIL_BCC") or to

    threshold = _parse_float(env, "MARKET_ALERT_THRESHOLD", THRESHOLD)
    if threshold < 0:
        raise ConfigError(f"MARKET_ALERT_THRESHOLD must be >= 0, got {threshold}")

    raw_policy = env.get("MARKET_ALERT_POLICY") or DEFAULT_POLICY.value
    try:
        policy = ThresholdPolicy(raw_policy.strip().lower())
    except ValueError:
        valid = ", ".join(p.value for p in ThresholdPolicy)
        raise ConfigError(f"MARKET_ALERT_POLICY must be one of {valid}, got {raw_policy!r}") from None

    smtp_ssl = env.get("SMTP_SSL", "false").strip().lower() == "true"
    raw_port = env.get("SMTP_PORT") or str(SMTP_SSL_PORT if smtp_ssl else SMTP_PORT)
    try:
        port = int(raw_port)
    except ValueError:
        raise ConfigError(f"SMTP_PORT must be an integer, got {raw_port!r}") from None

    return Settings(
        email_user=user,
        email_pass=password,
        email_to=to,
        email_bcc=bcc,
        smtp_host=env.get("SMTP_HOST") or SMTP_HOST,
        smtp_port=port,
        smtp_ssl=smtp_ssl,
        threshold=threshold,
        policy=policy,
        scheme_codes={
            Category.NIFTY50: _split_codes(env.get("NIFTY50_SCHEME_CODES"), NIFTY50_SCHEME_CODES),
            Category.NIFTYNEXT50: _split_codes(env.get("NIFTYNEXT50_SCHEME_CODES"), NIFTYNEXT50_SCHEME_CODES),
        },
        mfapi_base_url=(env.get("MFAPI_BASE_URL") or MFAPI_BASE_URL).rstrip("/"),
        http_timeout=_parse_float(env, "HTTP_TIMEOUT", HTTP_TIMEOUT_SECONDS),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )
