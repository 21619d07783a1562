"""Recursive walk turning a decoded JSON document into flat numeric observations."""
from abc import ABC, abstractmethod
from typing import Any, Callable, Sequence
import logging

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "::"


class Receiver(ABC):
    """Sink for the values found while walking a JSON document."""

    @abstractmethod
    def receive(self, name: str, value: float, indices: Sequence[int]):
        """Handle one numeric leaf reached through `indices` array positions."""
        pass


class ReceiverFunc(Receiver):
    """Adapts a plain callable to the Receiver interface."""

    def __init__(self, func: Callable[[str, float, Sequence[int]], None]):
        self.func = func

    def receive(self, name: str, value: float, indices: Sequence[int]):
        self.func(name, value, indices)


def join_path(path: str, segment: str) -> str:
    """Append a segment to a flattened name."""
    if not path:
        return segment
    return f"{path}{PATH_SEPARATOR}{segment}"


def walk_json(path: str, data: Any, indices: Sequence[int], receiver: Receiver):
    """
    Walk a JSON value depth-first and report every numeric leaf.

    Object keys extend the name verbatim. Array elements extend it with
    ``array_<depth>``, where depth is the number of arrays already crossed on
    the way down, and append their position to the index path handed to the
    receiver. Strings and nulls are ignored.

    Args:
        path: Flattened name of ``data`` ("" at the root unless prefixed)
        data: Decoded JSON value
        indices: Array positions crossed to reach ``data``
        receiver: Gets one ``receive`` call per number or boolean
    """
    # bool is a subclass of int, check it first
    if isinstance(data, bool):
        receiver.receive(path, 1.0 if data else 0.0, indices)

    elif isinstance(data, (int, float)):
        try:
            value = float(data)
        except OverflowError:
            logger.warning(f"Value at '{path}' does not fit in a float, skipping")
            return
        receiver.receive(path, value, indices)

    elif data is None or isinstance(data, str):
        return

    elif isinstance(data, list):
        array_path = join_path(path, f"array_{len(indices)}")
        for i, item in enumerate(data):
            walk_json(array_path, item, [*indices, i], receiver)

    elif isinstance(data, dict):
        for key in sorted(data):
            walk_json(join_path(path, key), data[key], indices, receiver)

    else:
        logger.warning(f"unknown type: {data!r}")
