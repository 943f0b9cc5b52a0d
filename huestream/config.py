"""
Core configuration management
"""
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Client-wide settings"""

    # Streaming defaults
    default_port: int = 2100
    default_tries: int = 3

    # REST control calls
    rest_timeout_sec: float = 5.0
    rest_verify_tls: bool = False  # bridges ship a self-signed certificate
    cancel_poll_interval_sec: float = 0.05

    # DTLS transport
    # The bridge drops idle sessions after ~10s; this only bounds the handshake
    dtls_handshake_timeout_sec: float = 30.0
    dtls_mtu: int = 1500

    # Bridge credentials (used by the CLI when flags are omitted)
    bridge_host: Optional[str] = None
    username: Optional[str] = None
    client_key: Optional[str] = None
    entertainment_area: Optional[str] = None

    # Paths
    project_root: Path = Path(__file__).parent.parent
    log_dir: Path = project_root / "logs"

    class Config:
        env_prefix = "HUESTREAM_"
        env_file = ".env"


settings = Settings()
