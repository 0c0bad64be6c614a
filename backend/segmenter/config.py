import sys

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Response Segmenter API"
    app_env: str = "development"
    cors_origins: str = "http://localhost:3000"
    cors_allow_credentials: bool = True
    log_level: str = "INFO"
    request_id_header: str = "X-Request-ID"

    max_content_chars: int = 200_000
    # Substrings that mark executable code as plot-producing.
    graph_keywords: str = "plt.,plotly,matplotlib"

    sandbox_python_path: str = sys.executable
    sandbox_default_timeout_ms: int = 30_000
    sandbox_max_timeout_ms: int = 120_000
    sandbox_preload_packages: str = ""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def graph_keywords_list(self) -> list[str]:
        return [keyword.strip() for keyword in self.graph_keywords.split(",") if keyword.strip()]

    @property
    def sandbox_preload_packages_list(self) -> list[str]:
        return [name.strip() for name in self.sandbox_preload_packages.split(",") if name.strip()]


settings = Settings()
