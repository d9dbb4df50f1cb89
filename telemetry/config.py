"""
Configuration settings for the telemetry client.
"""
import os
from dataclasses import dataclass

# Collector configuration
PROTO = 'https'
HOST = 'telemetry.manticoresearch.com'
PORT = 443

# The writing path for prometheus metrics
API_PATH = '/api/v1/import/prometheus'

# HTTP client configuration
REQUEST_TIMEOUT = 1  # seconds
COMPRESSION_LEVEL = 6

# Environment probe configuration
PROBE_TIMEOUT = 5  # seconds
MACHINE_ID_PREFIX = 'manticore'
OFFICIAL_IMAGE_ENV = 'DAEMON_URL'
OFFICIAL_IMAGE_MARKER = 'manticore'
OS_RELEASE_FILE = '/etc/os-release'
PROC1_SCHED_FILE = '/proc/1/sched'
MACHINE_ID_FILES = (
    '/var/lib/dbus/machine-id',
    '/etc/machine-id',
    '/etc/hostname',
)

# Logging configuration
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


@dataclass(frozen=True)
class Destination:
    """Where and how long to wait when delivering a batch."""
    proto: str = PROTO
    host: str = HOST
    port: int = PORT
    path: str = API_PATH
    timeout: float = REQUEST_TIMEOUT

    @property
    def url(self) -> str:
        return f"{self.proto}://{self.host}:{self.port}{self.path}"


DEFAULT_DESTINATION = Destination()
