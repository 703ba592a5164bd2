"""Environment-driven settings for the relay process.

Loaded once at startup and handed to the gateway and the Pi client explicitly.
The model is frozen so nothing can mutate configuration after boot.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_INDEX_PATH = (
    Path(__file__).resolve().parent.parent / "services" / "gateway" / "static" / "index.html"
)


class RelaySettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "pi-payment-relay"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    pi_server_api_key: str = ""
    pi_api_base: str = "https://api.minepi.com/v2"
    pi_api_timeout_seconds: float = 10.0
    max_body_bytes: int = 1_000_000
    index_path: Path = DEFAULT_INDEX_PATH
    otel_exporter_otlp_endpoint: str = ""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    @property
    def api_key_configured(self) -> bool:
        return bool(self.pi_server_api_key)


def load_settings() -> RelaySettings:
    """Build settings from the current environment."""

    return RelaySettings()
