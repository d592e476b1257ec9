from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

import os

# Explicitly load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Engine settings pulled from ATLAS_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ATLAS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Density estimation
    grid_resolution: int = Field(
        default=200, gt=0, description="Terrain cells along the longest canvas side"
    )
    kernel_bandwidth: float = Field(
        default=0.035, gt=0, description="Terrain kernel bandwidth as a fraction of min(width, height)"
    )
    settlement_bandwidth: float = Field(
        default=0.01, gt=0, description="Settlement kernel bandwidth as a fraction of min(width, height)"
    )
    padding: float = Field(default=50.0, ge=0, description="Screen padding around the point extent")
    smoothing_iterations: int = Field(default=3, ge=0, description="Box blur passes over the terrain grid")

    # Landmass noise
    noise_seed: str = Field(default="atlas", description="Seed for the coastline noise generator")
    noise_scale: float = Field(default=0.05, gt=0, description="Coordinate scale fed to the noise function")
    noise_amplitude: float = Field(default=0.15, ge=0, description="Base coastline displacement")

    # Settlements
    max_settlements: int = Field(default=50, gt=0, description="Settlement markers kept per generation")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (e.g., plain, json)")


# Instantiate singleton settings object
settings = Settings()
