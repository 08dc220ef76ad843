"""
govscan Configuration — pydantic-settings based.

All settings are read from environment variables or .env file.
LLM-backed features (semantic evaluation, fix generation, policy ingestion)
stay disabled while GROQ_API_KEY is empty.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings sourced from environment variables."""

    # ── LLM ──
    groq_api_key: str = Field(default="", description="Groq API key for LLM gateway")
    govscan_model: str = Field(
        default="llama-3.3-70b-versatile",
        description="Model identifier for Groq completions",
    )
    llm_timeout: int = Field(default=180, description="LLM request timeout in seconds")
    llm_max_retries: int = Field(default=3, description="Max LLM retry attempts")
    llm_temperature: float = Field(default=0.1, description="LLM temperature")
    llm_max_tokens: int = Field(default=8192, description="Completion token cap per call")

    # ── Targets ──
    github_token: str = Field(
        default="", description="Token embedded in clone URLs for private repositories"
    )
    git_timeout: int = Field(default=300, description="Timeout for git subprocesses (seconds)")

    # ── Scanning ──
    max_files_per_scan: int = Field(
        default=800, description="Discovery stops once this many files are listed"
    )
    max_file_size_kb: int = Field(
        default=80, description="Files larger than this are skipped (KiB)"
    )
    ignore_file_name: str = Field(
        default=".govscanignore", description="Project-local ignore file name"
    )
    code_pattern_file_limit: int = Field(
        default=50, description="Source files examined by the code-pattern detection phase"
    )

    # ── Policy documents ──
    fetch_timeout: int = Field(default=60, description="Document fetch timeout in seconds")
    fetch_max_bytes: int = Field(
        default=50 * 1024 * 1024, description="Max document body size (bytes)"
    )

    # ── Agent ──
    agent_check_interval_hours: int = Field(
        default=24, description="Hours between agent check cycles"
    )
    data_dir: Path = Field(
        default=Path.home() / ".govscan",
        description="Directory holding the database, agent pid file and log",
    )

    # ── Server ──
    port: int = Field(default=5001, description="Server port")
    host: str = Field(default="0.0.0.0", description="Server bind host")
    cors_origins: list[str] = Field(
        default=["*"], description="Allowed CORS origins"
    )

    # ── Audit ──
    audit_log_path: str = Field(
        default="audit.jsonl", description="Path to JSON-lines audit log file"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @property
    def db_path(self) -> Path:
        return self.data_dir / "govscan.db"

    @property
    def pid_path(self) -> Path:
        return self.data_dir / "agent.pid"

    @property
    def agent_log_path(self) -> Path:
        return self.data_dir / "agent.log"

    @property
    def llm_enabled(self) -> bool:
        return bool(self.groq_api_key.strip())


# Singleton instance, imported by other modules
settings = Settings()
