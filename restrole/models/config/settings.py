"""
RestRole - Settings Model

Pydantic model for the role manager configuration.
"""

from pydantic import BaseModel, Field


class ManagerSettings(BaseModel):
    """Validated role manager configuration"""
    database_url: str = "sqlite:///database/restrole.db"
    schema_agreement_poll_seconds: float = Field(default=1.0, gt=0)
    bootstrap_lease_seconds: int = Field(default=300, gt=0)
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_max_bytes: int = 10 * 1024 * 1024  # 10MB
    log_backup_count: int = 10
