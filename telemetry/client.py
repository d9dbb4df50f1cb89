"""
Telemetry client for sending anonymous usage counters to the collector.

Usage:

    client = TelemetryClient(labels={'version': '1.0', 'columnar': '5.2.3'})
    client.add('metric1', 1)
    client.add('metric1', 13)
    client.add('metric2', 1000)
    if client.send():
        print('OK')
"""
import logging
from typing import Dict, Mapping, Optional

from .environment import default_labels
from .labels import LabelStore
from .machine_id import MachineIdProbe
from .registry import MetricRegistry, Number
from .transmitter import Transmitter

logger = logging.getLogger(__name__)


class TelemetryClient:
    """
    Client that accumulates counters and flushes them in one request.

    An instance owns its labels and pending metrics; it is meant to be used
    by a single caller and is not thread safe.
    """

    def __init__(
        self,
        labels: Optional[Mapping[str, str]] = None,
        transmitter: Optional[Transmitter] = None,
        probe: Optional[MachineIdProbe] = None,
        with_timestamps: bool = False
    ):
        """
        Initialize the client with host labels followed by caller labels.

        Args:
            labels (dict, optional): Labels attached to every metric. They are
                applied after the host labels, so they win on name collisions.
            transmitter (Transmitter, optional): Delivery backend. Defaults to a Transmitter
                for config.DEFAULT_DESTINATION.
            probe (MachineIdProbe, optional): Machine-id probe override
            with_timestamps (bool): Append sample timestamps to every line
        """
        self.transmitter = transmitter or Transmitter()
        self.with_timestamps = with_timestamps
        self._labels = LabelStore()
        self._metrics = MetricRegistry()

        # Add default labels first
        self._labels.add_label_list(default_labels(probe))
        # And finally add all caller labels
        if labels:
            self._labels.add_label_list(labels)

    def add_label(self, name: str, value: str) -> 'TelemetryClient':
        """Add a single label used for all metrics recorded from now on."""
        self._labels.add_label(name, value)
        return self

    def add_label_list(self, labels: Mapping[str, str]) -> 'TelemetryClient':
        self._labels.add_label_list(labels)
        return self

    def reset_labels(self) -> 'TelemetryClient':
        self._labels.reset_labels()
        return self

    def update_labels(self, labels: Mapping[str, str]) -> 'TelemetryClient':
        self._labels.update_labels(labels)
        return self

    def get_labels(self) -> Dict[str, str]:
        return self._labels.get_labels()

    def add(self, name: str, value: Number) -> 'TelemetryClient':
        """
        Register a metric sample that will be sent on the next send() call.

        Args:
            name (str): The name of the metric
            value (int | float): Number value of the metric

        Returns:
            TelemetryClient: self

        Raises:
            ValueError: If the metric name is invalid
            TypeError: If the value is not a number
        """
        self._metrics.add(name, value, self._labels.snapshot())
        return self

    def get_pending_count(self) -> int:
        """
        Get the number of samples waiting for the next send().

        Returns:
            int: Number of pending samples
        """
        return self._metrics.sample_count()

    def send(self) -> bool:
        """
        Send the registered batch of metrics to the collector.

        The pending metrics are dropped whatever the outcome; a failed send
        is not retried.

        Returns:
            bool: True if the collector accepted the batch, False otherwise

        Raises:
            CompressionError: If the batch cannot be compressed
        """
        count = self._metrics.sample_count()
        body = self._metrics.drain(self.with_timestamps).encode('utf-8')
        result = self.transmitter.process(body)

        if result:
            logger.info(f"Successfully sent {count} metric samples")
        else:
            logger.warning(f"Failed to send {count} metric samples, dropping them")
        return result
