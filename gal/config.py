"""
Configuration for a gal build.

Values come from constructor arguments (the CLI passes its flags that
way) and fall back to environment variables:

    GAL_ENV=development        production | development
    GAL_CONCURRENCY=8          number of jobs run in parallel
    GAL_VERBOSE=true
    MAGICK_BIN=/usr/bin/magick
    MOZJPEG_BIN=/opt/mozjpeg/bin/cjpeg

A GalConfig is built once at startup and handed to the builder and the
walker explicitly; there is no module-level instance.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gal.errors import ConfigError

ENV_PRODUCTION = "production"
ENV_DEVELOPMENT = "development"

# Directory holding views/ and assets/; read live from disk in development
PACKAGE_DIR = Path(__file__).resolve().parent


class GalConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GAL_", frozen=True, extra="ignore")

    concurrency: int = Field(default=30, gt=0, description="Number of build jobs to run in parallel")
    env: Literal["production", "development"] = Field(
        default=ENV_PRODUCTION,
        description="production bundles assets and views; development symlinks and reads them from disk",
    )
    magick_bin: str | None = Field(
        default=None,
        validation_alias=AliasChoices("magick_bin", "MAGICK_BIN"),
        description="Path to ImageMagick binary",
    )
    mozjpeg_bin: str | None = Field(
        default=None,
        validation_alias=AliasChoices("mozjpeg_bin", "MOZJPEG_BIN"),
        description="Path to MozJPEG binary",
    )
    verbose: bool = False
    target_dir: Path | None = None
    source_dirs: list[Path] = Field(default_factory=list)
    project_dir: Path = PACKAGE_DIR

    @property
    def is_production(self) -> bool:
        return self.env == ENV_PRODUCTION

    def require_image_bins(self) -> None:
        """Fail fast if either image binary is unset; checked before any build runs."""
        if not self.magick_bin:
            raise ConfigError("Must either set MAGICK_BIN or --magick-bin")
        if not self.mozjpeg_bin:
            raise ConfigError("Must either set MOZJPEG_BIN or --mozjpeg-bin")

    def require_target_dir(self) -> Path:
        if self.target_dir is None:
            raise ConfigError("A target directory is required (--target-dir)")
        return self.target_dir
