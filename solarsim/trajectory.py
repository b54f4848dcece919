"""
Trajectory capture and serialization.

Samples are plain dicts so they can be returned from the API as JSON; the
writer produces XYZ frames that most particle viewers can load.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, TextIO

import numpy as np

from .system import System


def sample_bodies(system: System, t: float, include_velocity: bool = True) -> Dict[str, Any]:
    bodies = []
    for body in system.bodies:
        entry: Dict[str, Any] = {
            "name": body.name,
            "id": body.id,
            "position": body.position.tolist(),
        }
        if include_velocity:
            entry["velocity"] = body.velocity.tolist()
        bodies.append(entry)
    return {"t": float(t), "bodies": bodies}


def log_scale(values: np.ndarray) -> np.ndarray:
    """sign(x) * log10(1 + |x|), which keeps the inner planets readable next to the outer ones."""
    values = np.asarray(values, dtype=float)
    return np.sign(values) * np.log10(1.0 + np.abs(values))


def logarithmic_cadence(num_steps: int, num_samples: int) -> List[int]:
    """
    Step indices (0-based) spaced logarithmically over ``num_steps`` steps.
    The first and last step are always included; duplicates are collapsed,
    so fewer than ``num_samples`` indices may come back for short runs.
    """
    if num_steps <= 0 or num_samples <= 0:
        return []
    # More samples than steps cannot add indices.
    num_samples = min(num_samples, num_steps)
    if num_samples == 1:
        return [num_steps - 1]
    raw = np.logspace(0.0, np.log10(num_steps), num_samples) - 1.0
    indices = np.unique(np.clip(np.rint(raw).astype(int), 0, num_steps - 1))
    return [int(i) for i in indices]


class TrajectoryWriter:
    """
    Writes one XYZ frame per call to ``write``: a body-count line, a comment
    line carrying the simulated time, then ``name x y z`` per body.

    Use as a context manager or call ``close`` when the run is over.
    """

    def __init__(self, path: str, log_scale: bool = False, precision: int = 10) -> None:
        self.path = path
        self.log_scale = log_scale
        self.precision = precision
        self.frames_written = 0
        self._handle: Optional[TextIO] = None

    def __enter__(self) -> "TrajectoryWriter":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def open(self) -> None:
        if self._handle is None:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self._handle = open(self.path, "w", encoding="utf-8")

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def write(self, system: System, t: float) -> None:
        self.open()
        fmt = f"{{:.{self.precision}e}}"
        lines = [str(system.body_count), f"t={t:.6f} yr"]
        for body in system.bodies:
            coords = log_scale(body.position) if self.log_scale else body.position
            name = body.name.replace(" ", "_") or f"body{body.id}"
            lines.append(" ".join([name] + [fmt.format(c) for c in coords]))
        self._handle.write("\n".join(lines) + "\n")
        self.frames_written += 1
