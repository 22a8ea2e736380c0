from typing import Optional, List, Dict, Set
from pydantic_settings import BaseSettings
from pydantic import BaseModel, Field, field_validator


EXEC_FAN_IN_POLICIES = ("finding", "error", "allow")


class Settings(BaseSettings):
    """Process-wide analyzer settings."""

    # Logging Configuration
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Execution Configuration
    max_workers: int = Field(default=1, ge=1)

    # Graph Policy Configuration
    exec_fan_in_policy: str = "finding"
    deprecated_node_types: str = ""

    class Config:
        env_prefix = "BLUEPRINT_ANALYZER_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @field_validator("exec_fan_in_policy")
    @classmethod
    def check_fan_in_policy(cls, v):
        value = v.strip().lower()
        if value not in EXEC_FAN_IN_POLICIES:
            raise ValueError(f"exec_fan_in_policy must be one of {', '.join(EXEC_FAN_IN_POLICIES)}")
        return value

    @property
    def deprecated_node_types_list(self) -> List[str]:
        """Get deprecated node type names as a list."""
        return [name.strip() for name in self.deprecated_node_types.split(",") if name.strip()]


class AnalysisConfig(BaseModel):
    """Per-run rule configuration supplied by the caller."""
    enabled_rules: Optional[Set[str]] = None
    thresholds: Dict[str, float] = Field(default_factory=dict)

    def is_enabled(self, rule_id: str) -> bool:
        return self.enabled_rules is None or rule_id in self.enabled_rules


settings = Settings()
