"""Process-wide runtime configuration.

Values are seeded from environment variables on first access and can be
updated with :func:`configure` or temporarily with :func:`config_override`.
"""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass, fields, replace
from typing import Any, Iterator

from .errors import InvalidParameterValue


_CSV_COMPLEX_STYLES = ("pair", "suffix")


@dataclass(frozen=True)
class RuntimeConfig:
    relative_tolerance: float = 1.0e-12
    rank_epsilon: float = 1.0e-12
    edge_items: int = 4
    csv_complex_style: str = "pair"
    csv_delimiter: str = ","

    def validate(self) -> "RuntimeConfig":
        if self.relative_tolerance < 0 or self.rank_epsilon < 0:
            raise InvalidParameterValue("tolerances must be non-negative")
        if self.edge_items < 1:
            raise InvalidParameterValue("edge_items must be at least 1")
        if self.csv_complex_style not in _CSV_COMPLEX_STYLES:
            raise InvalidParameterValue(
                f"csv_complex_style must be one of {_CSV_COMPLEX_STYLES}"
            )
        if len(self.csv_delimiter) != 1:
            raise InvalidParameterValue("csv_delimiter must be a single character")
        return self


_lock = threading.Lock()
_active: RuntimeConfig | None = None


def _from_environment() -> RuntimeConfig:
    cfg = RuntimeConfig()
    tol = os.environ.get("MODELRT_RELATIVE_TOLERANCE")
    if tol:
        try:
            cfg = replace(cfg, relative_tolerance=float(tol))
        except ValueError as exc:
            raise InvalidParameterValue(f"MODELRT_RELATIVE_TOLERANCE={tol!r}") from exc
    style = os.environ.get("MODELRT_CSV_COMPLEX_STYLE")
    if style:
        cfg = replace(cfg, csv_complex_style=style.strip().lower())
    return cfg.validate()


def get_config() -> RuntimeConfig:
    global _active
    cfg = _active
    if cfg is not None:
        return cfg
    with _lock:
        if _active is None:
            _active = _from_environment()
        return _active


def configure(**kwargs: Any) -> RuntimeConfig:
    """Update the active configuration and return the new instance."""
    global _active
    known = {f.name for f in fields(RuntimeConfig)}
    unknown = set(kwargs) - known
    if unknown:
        raise InvalidParameterValue(f"unknown configuration keys: {sorted(unknown)}")
    current = get_config()
    updated = replace(current, **kwargs).validate()
    with _lock:
        _active = updated
    return updated


@contextmanager
def config_override(**kwargs: Any) -> Iterator[RuntimeConfig]:
    global _active
    previous = get_config()
    try:
        yield configure(**kwargs)
    finally:
        with _lock:
            _active = previous
