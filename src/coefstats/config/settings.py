"""Configuration management using Pydantic Settings."""

from typing import Tuple
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Package defaults loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="COEFSTATS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Statistical defaults
    k: int = Field(2, ge=0, le=10, description="Decimal places in labels and captions")
    conf_level: float = Field(0.95, gt=0.0, lt=1.0)
    significance_threshold: float = Field(0.05, gt=0.0, lt=1.0)

    # Plot defaults
    palette: str = Field("Dark2", description="Matplotlib qualitative colormap for labels")
    figure_width: float = Field(8.0, gt=0)
    figure_height: float = Field(6.0, gt=0)
    dpi: int = Field(150, ge=50, le=600)

    # Logging
    log_level: str = Field("INFO")
    log_format: str = Field("json", pattern="^(json|text)$")

    @property
    def figsize(self) -> Tuple[float, float]:
        return (self.figure_width, self.figure_height)


# Instantiate global settings
settings = Settings()
