"""
In-memory registry of counter samples waiting for the next flush.
"""
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Tuple, Union

import pytz

from .labels import Label

logger = logging.getLogger(__name__)

METRIC_NAME_RE = re.compile(r'^[a-zA-Z_:][a-zA-Z0-9_:]*$')

Number = Union[int, float]


def _utcnow() -> datetime:
    return datetime.now(pytz.UTC)


def _escape_label_value(value: str) -> str:
    return value.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')


def _format_value(value: Number) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return 'NaN'
        if math.isinf(value):
            return '+Inf' if value > 0 else '-Inf'
        return repr(value)
    return str(value)


@dataclass(frozen=True)
class CounterSample:
    """A single counter value together with the labels in effect when it was recorded."""
    value: Number
    labels: Tuple[Label, ...] = ()
    recorded_at: datetime = field(default_factory=_utcnow)

    def to_line(self, name: str, with_timestamp: bool = False) -> str:
        """
        Render the sample as one exposition line.

        Args:
            name (str): Metric name the sample belongs to
            with_timestamp (bool): Append recorded_at in epoch milliseconds

        Returns:
            str: Line such as ``name{a="1",b="2"} 13``
        """
        labels_str = ''
        if self.labels:
            pairs = [f'{label.name}="{_escape_label_value(label.value)}"' for label in self.labels]
            labels_str = '{' + ','.join(pairs) + '}'

        line = f"{name}{labels_str} {_format_value(self.value)}"
        if with_timestamp:
            line += f" {int(self.recorded_at.timestamp() * 1000)}"
        return line


class CounterCollection:
    """All samples recorded under one metric name."""

    def __init__(self, name: str):
        if not isinstance(name, str) or not METRIC_NAME_RE.match(name):
            raise ValueError(f"Invalid metric name: {name!r}")
        self.name = name
        self.samples: List[CounterSample] = []

    def add(self, sample: CounterSample) -> None:
        self.samples.append(sample)

    def render(self, with_timestamps: bool = False) -> str:
        lines = [f"# TYPE {self.name} counter"]
        lines.extend(sample.to_line(self.name, with_timestamps) for sample in self.samples)
        return '\n'.join(lines)

    def __len__(self) -> int:
        return len(self.samples)


def _render_all(collections: Iterable[CounterCollection], with_timestamps: bool) -> str:
    return ''.join(collection.render(with_timestamps) + '\n' for collection in collections)


class MetricRegistry:
    """
    Insertion-ordered mapping of metric name to its collection of samples.

    Repeated ``add`` calls for the same name append new samples instead of
    summing them, so every call shows up as its own line in the output.
    """

    def __init__(self):
        self._metrics: Dict[str, CounterCollection] = {}

    def add(self, name: str, value: Number, labels: Tuple[Label, ...] = ()) -> CounterSample:
        """
        Record a counter sample.

        Args:
            name (str): Metric name
            value (int | float): Sample value, any sign
            labels (tuple): Label snapshot to attach to the sample

        Returns:
            CounterSample: The recorded sample

        Raises:
            ValueError: If the metric name is invalid
            TypeError: If the value is not a number
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Metric value must be int or float, got {type(value).__name__}")

        collection = self._metrics.get(name)
        if collection is None:
            # We received this metric for the first time
            collection = CounterCollection(name)
            self._metrics[name] = collection

        sample = CounterSample(value, tuple(labels))
        collection.add(sample)
        return sample

    def render(self, with_timestamps: bool = False) -> str:
        """
        Serialize every collection without clearing the registry.

        Returns:
            str: Exposition text, one block per metric name, each followed by a line break
        """
        return _render_all(self._metrics.values(), with_timestamps)

    def drain(self, with_timestamps: bool = False) -> str:
        """
        Serialize every collection and empty the registry.

        The registry is cleared before rendering starts, so nothing recorded
        so far survives this call.

        Returns:
            str: Exposition text, one block per metric name, each followed by a line break
        """
        metrics, self._metrics = self._metrics, {}
        body = _render_all(metrics.values(), with_timestamps)
        logger.debug("Drained %d metrics from registry", len(metrics))
        return body

    def names(self) -> List[str]:
        return list(self._metrics)

    def sample_count(self) -> int:
        return sum(len(collection) for collection in self._metrics.values())

    def __contains__(self, name: str) -> bool:
        return name in self._metrics

    def __len__(self) -> int:
        return len(self._metrics)
