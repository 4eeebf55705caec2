import typing as t
from collections.abc import Mapping

Layer = Mapping[str, t.Any]


def merge_layers(*layers: Layer) -> dict[str, t.Any]:
    """Merge configuration layers left to right.

    Nested mappings are merged key by key; any other value in a later layer
    replaces the earlier one outright.
    """
    merged: dict[str, t.Any] = {}
    for layer in layers:
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(value, Mapping) and isinstance(current, Mapping):
                merged[key] = merge_layers(current, t.cast(Layer, value))
            else:
                merged[key] = value
    return merged
