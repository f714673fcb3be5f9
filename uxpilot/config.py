"""Pipeline configuration: credentials, external endpoints and tuning knobs."""

from pydantic_settings import BaseSettings

from uxpilot.errors import ConfigurationError


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    # Clarity Data Export API
    clarity_api_token: str = ""
    clarity_project_id: str = "unknown"
    clarity_base_url: str = "https://www.clarity.ms/export-data/api/v1/project-live-insights"
    clarity_max_calls_per_day: int = 10
    clarity_num_days: int = 1

    # LLM
    llm_provider: str = "anthropic"
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 16000
    llm_temperature: float = 0.2
    llm_max_retries: int = 3
    llm_min_retry_wait_seconds: float = 60.0
    llm_input_price_per_mtok: float = 3.0
    llm_output_price_per_mtok: float = 15.0

    # Target repository
    target_repo: str = "iariza1/toma-app-web-2"
    clone_dir: str = "/tmp/toma-app-web-2"
    github_token: str = ""

    # Notifications
    slack_webhook_url: str = ""

    # Storage
    data_dir: str = "output/data"
    reports_dir: str = "output/reports"

    # Request size budgets (characters unless noted)
    dataset_char_budget: int = 100_000
    manifest_char_budget: int = 3_000
    file_listing_char_budget: int = 5_000
    route_files_char_budget: int = 80_000
    max_route_files: int = 20
    route_file_full_size: int = 10_000
    route_file_head_lines: int = 200

    # Service
    host: str = "0.0.0.0"
    port: int = 8100

    def require_credentials(self) -> None:
        """Fail fast on an unknown provider or an absent credential."""
        if self.llm_provider not in ("anthropic", "openai"):
            raise ConfigurationError(
                [], f"Unsupported LLM_PROVIDER '{self.llm_provider}' (expected anthropic or openai)."
            )
        missing = []
        if not self.clarity_api_token:
            missing.append("CLARITY_API_TOKEN")
        if self.llm_provider == "anthropic" and not self.anthropic_api_key:
            missing.append("ANTHROPIC_API_KEY")
        if self.llm_provider == "openai" and not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if missing:
            raise ConfigurationError(missing)


settings = Settings()
