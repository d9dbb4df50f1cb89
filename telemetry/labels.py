"""
Label store shared by every counter sample of a client.
"""
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Tuple

LABEL_NAME_RE = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')


@dataclass(frozen=True)
class Label:
    """A single name/value tag attached to a sample."""
    name: str
    value: str

    @classmethod
    def from_name_and_value(cls, name: str, value) -> 'Label':
        """
        Build a label, validating the name.

        Args:
            name (str): Label name, must follow the exposition label grammar
            value: Label value, converted to str

        Returns:
            Label: The new label

        Raises:
            ValueError: If the name is not a valid label name
        """
        if not isinstance(name, str) or not LABEL_NAME_RE.match(name):
            raise ValueError(f"Invalid label name: {name!r}")
        return cls(name, str(value))


class LabelStore:
    """
    Ordered labels with last-write-wins semantics per name.

    Adding a label whose name already exists drops the older entry and
    appends the new one, so the store never holds two labels with the same
    name and the most recently written names sit at the end.
    """

    def __init__(self):
        self._labels: List[Label] = []

    def add_label(self, name: str, value) -> 'LabelStore':
        label = Label.from_name_and_value(name, value)
        self._labels = [item for item in self._labels if item.name != name]
        self._labels.append(label)
        return self

    def add_label_list(self, labels: Mapping[str, str]) -> 'LabelStore':
        for name, value in labels.items():
            self.add_label(name, value)
        return self

    def update_labels(self, labels: Mapping[str, str]) -> 'LabelStore':
        """
        Replace the labels named in ``labels`` and move them to the end.

        Labels with other names are left in place.
        """
        self._labels = [item for item in self._labels if item.name not in labels]
        return self.add_label_list(labels)

    def reset_labels(self) -> 'LabelStore':
        self._labels = []
        return self

    def get_labels(self) -> Dict[str, str]:
        return {label.name: label.value for label in self._labels}

    def snapshot(self) -> Tuple[Label, ...]:
        """Copy of the current labels, safe to keep after further updates."""
        return tuple(self._labels)

    def __iter__(self) -> Iterator[Label]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._labels)
