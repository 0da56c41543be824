"""Data structures for solver configuration and results.

Structure:
- NavierStokesParameters: Input configuration (logged to MLflow at start)
- Metrics: Output results (logged to MLflow at end)
- Fields: Velocity and pressure on the P2 nodes
- TimeSeries: Per-step history
"""

from dataclasses import dataclass, asdict, field
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class NavierStokesParameters:
    """Parameters of the characteristics Navier-Stokes solver."""

    nu: float = 0.0025
    dt: float = 0.1
    n_steps: int = 80
    tgv: float = 1e31
    pressure_regularization: float = 1e-7
    sparsity_threshold: float = 1e-15
    dirichlet_labels: Tuple[int, ...] = (10, 20, 30, 40)
    rhs_scheme: str = "gauss7"  # "gauss7" or "midpoint"
    max_velocity: float = 3.0
    locator_tolerance: float = 1e-12

    # Domain-exit policy; the default outlet span (0, 1) assumes the backward-facing step
    exit_policy: str = "channel"
    x_inlet: float = 0.0
    x_outlet: float = 10.0
    inlet_y: Tuple[float, float] = (0.5, 1.0)
    outlet_y: Tuple[float, float] = (0.0, 1.0)

    initial_stokes: bool = True
    log_every: int = 10
    method: str = "P2P1-Characteristics"

    def __post_init__(self):
        self.dirichlet_labels = tuple(int(lab) for lab in self.dirichlet_labels)
        self.inlet_y = tuple(float(y) for y in self.inlet_y)
        self.outlet_y = tuple(float(y) for y in self.outlet_y)
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.nu < 0:
            raise ValueError(f"nu must be non-negative, got {self.nu}")

    @property
    def alpha(self) -> float:
        """Reciprocal time step."""
        return 1.0 / self.dt

    def to_dataframe(self):
        return pd.DataFrame([self.to_mlflow()])

    def to_mlflow(self) -> dict:
        """Flat parameter dict (tuples rendered as strings)."""
        return {
            k: (",".join(str(x) for x in v) if isinstance(v, tuple) else v)
            for k, v in asdict(self).items()
        }


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Solver metrics - output results computed during/after solving."""

    steps: int = 0
    final_time: float = 0.0
    final_change: float = float("inf")
    wall_time_seconds: float = 0.0
    final_energy: float = 0.0
    max_velocity: float = 0.0
    assemblies: int = 0
    exits: int = 0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        return {k: float(v) for k, v in asdict(self).items()}


# ========================================================
# Fields (Spatial Solution Data)
# ========================================================


@dataclass
class Fields:
    """Solution fields (u, v, p) on the P2 nodes (x, y)."""

    u: np.ndarray
    v: np.ndarray
    p: np.ndarray
    x: np.ndarray
    y: np.ndarray

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per P2 node."""
        return pd.DataFrame(asdict(self))


# ========================================================
# Time Series (Step History)
# ========================================================


@dataclass
class TimeSeries:
    """History with one value per time step."""

    time: List[float] = field(default_factory=list)
    rel_change: List[float] = field(default_factory=list)
    energy: List[float] = field(default_factory=list)
    exits: Optional[List[int]] = None

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per time step."""
        return pd.DataFrame({k: v for k, v in asdict(self).items() if v is not None})

    def to_mlflow_batch(self) -> list:
        """MLflow ``Metric`` entities for batch logging, indexed by step."""
        from mlflow.entities import Metric

        timestamp = int(pd.Timestamp.now().timestamp() * 1000)
        metrics = []
        for name in ("rel_change", "energy"):
            for step, value in enumerate(getattr(self, name)):
                metrics.append(Metric(name, float(value), timestamp, step))
        return metrics


@dataclass
class SolverArrays:
    """Internal solver vectors - current and previous solution, RHS work buffer."""

    x: np.ndarray
    x_prev: np.ndarray
    rhs: np.ndarray

    # Reusable LU factorization of the time-step operator
    lu: object = None

    @classmethod
    def allocate(cls, n_dofs: int):
        return cls(x=np.zeros(n_dofs), x_prev=np.zeros(n_dofs), rhs=np.zeros(n_dofs))
