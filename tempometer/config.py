"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Audio
    sample_rate: int = 44100
    chunk_size: int = 4096

    # Live streaming
    continuous_analysis: bool = False
    stabilization_time: int = 20000  # ms before a continuous session resets
    mute_time_in_indexes: int = 10000  # samples ignored after a peak
    debug: bool = False

    # Logging
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_mb: int = 50

    model_config = {"env_prefix": "TEMPOMETER_"}


settings = Settings()
