from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Supabase (alerts table + auth admin API)
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Resend transactional email (blank key = email disabled, alerts stay active)
    resend_api_key: str = ""
    resend_base_url: str = "https://api.resend.com"
    from_email: str = "Bitcoin Investments <alerts@bitcoinvestments.net>"

    # Market data
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: str = ""  # optional demo key, sent as x-cg-demo-api-key
    vs_currency: str = "usd"

    # Links rendered into the alert email
    site_url: str = "https://bitcoinvestments.net"

    # Trigger endpoint auth: cron marker header, or bearer matching the secret
    # (falls back to the Supabase service key when blank)
    alert_check_secret: str = ""
    cron_header_name: str = "X-Cloudflare-Cron"

    # Outbound calls
    http_timeout_seconds: float = 15.0
    lookup_concurrency: int = 10  # parallel owner-email lookups
    notify_concurrency: int = 5  # parallel notify+commit sequences

    # In-process scheduler
    scheduler_enabled: bool = True
    check_interval_seconds: int = 300

    # Web
    web_host: str = "0.0.0.0"
    web_port: int = 8888

    log_level: str = "INFO"

    @property
    def email_configured(self) -> bool:
        return bool(self.resend_api_key)

    @property
    def service_secret(self) -> str:
        return self.alert_check_secret or self.supabase_service_role_key


settings = Settings()
