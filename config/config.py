# Save this file as: config/config.py
import os
from dataclasses import dataclass


@dataclass
class ClientConfig:
    # Rate every capture is resampled to before streaming
    sample_rate: int = int(os.getenv('SAMPLE_RATE', 16000))
    chunk_duration_ms: int = int(os.getenv('CHUNK_DURATION_MS', 100))

    default_uri: str = 'localhost:50051'
    uri_env_var: str = 'RIVA_URI'
    connect_timeout_s: float = float(os.getenv('CONNECT_TIMEOUT_S', 10.0))

    log_dir: str = os.getenv('LOG_DIR', '')


# Load configurations
client_config = ClientConfig()
