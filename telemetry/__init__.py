"""
Anonymous usage telemetry client.
"""
from .client import TelemetryClient
from .config import Destination, DEFAULT_DESTINATION
from .exceptions import TelemetryError, CompressionError
from .labels import Label, LabelStore
from .machine_id import MachineIdProbe, select_probe
from .registry import CounterSample, CounterCollection, MetricRegistry
from .transmitter import Transmitter

__version__ = '1.0.0'

__all__ = [
    'TelemetryClient',
    'Destination',
    'DEFAULT_DESTINATION',
    'TelemetryError',
    'CompressionError',
    'Label',
    'LabelStore',
    'MachineIdProbe',
    'select_probe',
    'CounterSample',
    'CounterCollection',
    'MetricRegistry',
    'Transmitter',
]
