"""Abstract base solver for transient incompressible flow problems."""

from abc import ABC, abstractmethod
import logging
import time
from pathlib import Path

import numpy as np
import mlflow

from .datastructures import TimeSeries, Metrics, Fields

log = logging.getLogger(__name__)


class TransientSolver(ABC):
    """Abstract base solver for time-stepping flow solvers.

    Handles:
    - Parameter management (input configuration)
    - Metrics tracking (output results)
    - Time loop with relative change and kinetic energy history
    - Live MLflow logging when a run is active

    Subclasses must:
    - Set Parameters class attribute
    - Implement step() - advance one time step, return the solution vector
    - Implement _compute_energy()
    - Call _init_fields(x, y) after setting up the discretization
    """

    Parameters = None  # Subclasses set this to their parameter dataclass

    def __init__(self, params=None, **kwargs):
        """Initialize solver with parameters.

        Parameters
        ----------
        params : Parameters, optional
            Parameters object. If not provided, kwargs are used to create params.
        **kwargs
            Configuration parameters passed to Parameters class if params is None.
        """
        if params is None:
            if self.Parameters is None:
                raise ValueError("Subclass must define Parameters class attribute")
            params = self.Parameters(**kwargs)

        self.params = params
        self.metrics = Metrics()
        self.fields = None  # Initialized by subclass via _init_fields()
        self.time_series = None  # Populated after solve()
        self.time = 0.0
        self.steps_taken = 0

    def _init_fields(self, x: np.ndarray, y: np.ndarray):
        """Pre-allocate the output fields on the node coordinates."""
        n_points = len(x)
        self.fields = Fields(
            u=np.zeros(n_points),
            v=np.zeros(n_points),
            p=np.zeros(n_points),
            x=x.copy(),
            y=y.copy(),
        )

    def _initialize(self):
        """Hook run once before the first time step (e.g. an initial Stokes solve)."""
        pass

    @abstractmethod
    def step(self) -> np.ndarray:
        """Advance one time step.

        Returns
        -------
        np.ndarray
            Updated solution vector.
        """
        pass

    @property
    @abstractmethod
    def solution(self) -> np.ndarray:
        """Current solution vector."""
        pass

    @abstractmethod
    def _finalize_fields(self):
        """Copy the current solution into self.fields."""
        pass

    @abstractmethod
    def _compute_energy(self) -> float:
        """Kinetic energy of the current solution."""
        pass

    def _exit_count(self) -> int:
        """Characteristics that left the domain during the last step."""
        return 0

    def solve(self, n_steps: int = None, callback=None):
        """Run the time loop.

        Stores results in solver attributes:
        - self.fields : Fields dataclass with solution fields
        - self.time_series : TimeSeries dataclass with the step history
        - self.metrics : Metrics dataclass with solver metrics

        Parameters
        ----------
        n_steps : int, optional
            Number of time steps. If None, uses params.n_steps.
        callback : callable, optional
            Called as ``callback(solver, step)`` after every time step.
        """
        if n_steps is None:
            n_steps = self.params.n_steps
        log_every = max(int(self.params.log_every), 1)

        self._initialize()

        history = TimeSeries(exits=[])
        time_start = time.time()
        mlflow_time = 0.0  # Track time spent on MLflow logging

        x_prev = None
        for i in range(n_steps):
            if x_prev is None:
                x_prev = self.solution.copy()

            x = self.step()
            self.steps_taken += 1
            self.time += self.params.dt

            rel_change = float(np.linalg.norm(x - x_prev) / (np.linalg.norm(x_prev) + 1e-12))
            energy = self._compute_energy()
            x_prev = x.copy()

            history.time.append(self.time)
            history.rel_change.append(rel_change)
            history.energy.append(energy)
            history.exits.append(self._exit_count())

            if i % log_every == 0 or i == n_steps - 1:
                log.info(
                    f"Step {i}: t={self.time:.4g}, change={rel_change:.6e}, energy={energy:.6e}"
                )

                # Live MLflow logging (timed separately)
                if mlflow.active_run():
                    t_log_start = time.time()
                    mlflow.log_metrics({"rel_change": rel_change, "energy": energy}, step=i)
                    mlflow_time += time.time() - t_log_start

            if callback is not None:
                callback(self, i)

        wall_time = time.time() - time_start - mlflow_time
        log.info(f"Solver finished in {wall_time:.2f} seconds (excl. {mlflow_time:.2f}s logging).")

        self._store_results(history, wall_time)

    def _store_results(self, history: TimeSeries, wall_time: float):
        """Store solve results in self.fields, self.time_series, and self.metrics."""
        self._finalize_fields()
        self.time_series = history

        speed = np.hypot(self.fields.u, self.fields.v)
        self.metrics = Metrics(
            steps=self.steps_taken,
            final_time=self.time,
            final_change=history.rel_change[-1] if history.rel_change else float("inf"),
            wall_time_seconds=wall_time,
            final_energy=history.energy[-1] if history.energy else self._compute_energy(),
            max_velocity=float(speed.max()) if speed.size else 0.0,
            assemblies=self._assembly_count(),
            exits=int(sum(history.exits)) if history.exits else 0,
        )

    def _assembly_count(self) -> int:
        return 0

    def save(self, filepath):
        """Save complete solver state to HDF5 file.

        Saves params, metrics, time_series, and fields for later analysis.

        Parameters
        ----------
        filepath : str or Path
            Output file path (use .h5 extension).
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        import pandas as pd
        with pd.HDFStore(filepath, mode='w', complevel=5) as store:
            store['params'] = self.params.to_dataframe()
            store['metrics'] = self.metrics.to_dataframe()
            if self.time_series is not None:
                store['time_series'] = self.time_series.to_dataframe()
            store['fields'] = self.fields.to_dataframe()

        log.info(f"Saved solver state to {filepath}")
