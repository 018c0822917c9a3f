"""
Configuration for airdrop-checker.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml

logger = logging.getLogger(__name__)

# Placeholder values shipped in the sample config; treated as "not configured"
SERVICE_ID_PLACEHOLDER = "service_xxxxxxx"
TEMPLATE_ID_PLACEHOLDER = "template_xxxxxxx"
PUBLIC_KEY_PLACEHOLDER = "xxxxxxxxxxxxx"
SUPABASE_URL_PLACEHOLDER = "https://your-project.supabase.co"
SUPABASE_KEY_PLACEHOLDER = "your-anon-key"

DEFAULT_CONFIG_PATH = Path("airdrop_checker.yaml")


@dataclass
class EmailJSConfig:
    """EmailJS delivery service configuration."""

    service_id: str = SERVICE_ID_PLACEHOLDER
    template_id: str = TEMPLATE_ID_PLACEHOLDER
    confirmation_template_id: str = "template_confirmation"
    public_key: str = PUBLIC_KEY_PLACEHOLDER
    private_key: str | None = None
    admin_email: str = "votre-email@example.com"
    api_base: str = "https://api.emailjs.com"
    timeout_seconds: float = 10.0

    def is_configured(self) -> bool:
        """True when service, template and public key are all real values."""
        pairs = (
            (self.service_id, SERVICE_ID_PLACEHOLDER),
            (self.template_id, TEMPLATE_ID_PLACEHOLDER),
            (self.public_key, PUBLIC_KEY_PLACEHOLDER),
        )
        return all(value and value != placeholder for value, placeholder in pairs)


@dataclass
class SupabaseConfig:
    """Supabase project configuration."""

    url: str = SUPABASE_URL_PLACEHOLDER
    anon_key: str = SUPABASE_KEY_PLACEHOLDER
    schema: str = "public"
    airdrops_table: str = "airdrops"
    suggestions_table: str = "airdrop_suggestions"
    timeout_seconds: float = 10.0

    def is_configured(self) -> bool:
        """True when both the project URL and access key are real values."""
        return bool(
            self.url
            and self.anon_key
            and self.url != SUPABASE_URL_PLACEHOLDER
            and self.anon_key != SUPABASE_KEY_PLACEHOLDER
        )

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"

    @property
    def realtime_url(self) -> str:
        parsed = urlparse(self.url)
        scheme = "ws" if parsed.scheme == "http" else "wss"
        return (
            f"{scheme}://{parsed.netloc}/realtime/v1/websocket"
            f"?apikey={self.anon_key}&vsn=1.0.0"
        )


@dataclass
class RateLimitConfig:
    """Client-side anti-spam throttling."""

    min_interval_seconds: float = 60.0


@dataclass
class NotificationsConfig:
    """Optional notification behaviour."""

    send_user_confirmation: bool = False


@dataclass
class AppConfig:
    """Complete airdrop-checker configuration."""

    emailjs: EmailJSConfig = field(default_factory=EmailJSConfig)
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        if "emailjs" in data:
            ej = data["emailjs"] or {}
            defaults = EmailJSConfig()
            config.emailjs = EmailJSConfig(
                service_id=ej.get("service_id", defaults.service_id),
                template_id=ej.get("template_id", defaults.template_id),
                confirmation_template_id=ej.get(
                    "confirmation_template_id", defaults.confirmation_template_id
                ),
                public_key=ej.get("public_key", defaults.public_key),
                private_key=ej.get("private_key"),
                admin_email=ej.get("admin_email", defaults.admin_email),
                api_base=ej.get("api_base", defaults.api_base),
                timeout_seconds=float(ej.get("timeout_seconds", defaults.timeout_seconds)),
            )

        if "supabase" in data:
            sb = data["supabase"] or {}
            defaults = SupabaseConfig()
            config.supabase = SupabaseConfig(
                url=sb.get("url", defaults.url),
                anon_key=sb.get("anon_key", defaults.anon_key),
                schema=sb.get("schema", defaults.schema),
                airdrops_table=sb.get("airdrops_table", defaults.airdrops_table),
                suggestions_table=sb.get("suggestions_table", defaults.suggestions_table),
                timeout_seconds=float(sb.get("timeout_seconds", defaults.timeout_seconds)),
            )

        if "rate_limit" in data:
            rl = data["rate_limit"] or {}
            config.rate_limit = RateLimitConfig(
                min_interval_seconds=float(rl.get("min_interval_seconds", 60.0)),
            )

        if "notifications" in data:
            notif = data["notifications"] or {}
            config.notifications = NotificationsConfig(
                send_user_confirmation=bool(notif.get("send_user_confirmation", False)),
            )

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "AppConfig":
        """Load config from a YAML file. A missing file yields defaults."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    def apply_env(self, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """Override values from environment variables, in place."""
        env = os.environ if environ is None else environ

        overrides = {
            "EMAILJS_SERVICE_ID": (self.emailjs, "service_id"),
            "EMAILJS_TEMPLATE_ID": (self.emailjs, "template_id"),
            "EMAILJS_CONFIRMATION_TEMPLATE_ID": (self.emailjs, "confirmation_template_id"),
            "EMAILJS_PUBLIC_KEY": (self.emailjs, "public_key"),
            "EMAILJS_PRIVATE_KEY": (self.emailjs, "private_key"),
            "ADMIN_EMAIL": (self.emailjs, "admin_email"),
            "SUPABASE_URL": (self.supabase, "url"),
            "SUPABASE_ANON_KEY": (self.supabase, "anon_key"),
        }
        for name, (section, attr) in overrides.items():
            value = env.get(name)
            if value:
                setattr(section, attr, value)

        interval = env.get("SUGGESTION_MIN_INTERVAL_SECONDS")
        if interval:
            try:
                self.rate_limit.min_interval_seconds = float(interval)
            except ValueError:
                logger.warning(
                    f"Ignoring invalid SUGGESTION_MIN_INTERVAL_SECONDS: {interval!r}"
                )

        return self

    @classmethod
    def load(
        cls,
        path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "AppConfig":
        """Load YAML config, then apply environment overrides."""
        config = cls.from_yaml(path or DEFAULT_CONFIG_PATH)
        return config.apply_env(environ)

    def warn_if_unconfigured(self) -> None:
        """Log a warning for each backend still on placeholder values."""
        if not self.emailjs.is_configured():
            logger.warning(
                "EmailJS is not configured. Admin notifications will not be sent."
            )
        if not self.supabase.is_configured():
            logger.warning(
                "Supabase is not configured. Suggestions and airdrops cannot be stored."
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for display. Secrets are omitted."""
        return {
            "emailjs": {
                "service_id": self.emailjs.service_id,
                "template_id": self.emailjs.template_id,
                "confirmation_template_id": self.emailjs.confirmation_template_id,
                "admin_email": self.emailjs.admin_email,
                "api_base": self.emailjs.api_base,
                "configured": self.emailjs.is_configured(),
            },
            "supabase": {
                "url": self.supabase.url,
                "schema": self.supabase.schema,
                "airdrops_table": self.supabase.airdrops_table,
                "suggestions_table": self.supabase.suggestions_table,
                "configured": self.supabase.is_configured(),
            },
            "rate_limit": {
                "min_interval_seconds": self.rate_limit.min_interval_seconds,
            },
            "notifications": {
                "send_user_confirmation": self.notifications.send_user_confirmation,
            },
        }
