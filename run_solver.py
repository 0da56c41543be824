"""
Channel Flow Runner - Hydra + MLflow integration for the characteristics solver.

Single runs:
    uv run python run_solver.py
    uv run python run_solver.py solver.dt=0.05 solver.n_steps=160 mesh.nx=80

Mesh from file (FreeFem or gmsh .msh):
    uv run python run_solver.py mesh=file mesh.path=/abs/path/step.msh
    uv run python run_solver.py mesh=file mesh.kind=gmsh mesh.path=/abs/path/step.msh

Parameter sweeps (multirun mode):
    uv run python run_solver.py -m solver.dt=0.2,0.1,0.05 solver.rhs_scheme=gauss7,midpoint

MLflow modes:
    local   - file-based ./mlruns (default)
    remote  - tracking server (requires .env with credentials)

Setup for remote MLflow:
    cp .env.template .env
    # Edit .env with your credentials
"""

import logging
import os
import sys
from pathlib import Path

import hydra
import mlflow
from dotenv import load_dotenv
from hydra.utils import instantiate
from mlflow.tracking import MlflowClient
from omegaconf import DictConfig, OmegaConf

# Load .env file (for MLflow credentials)
load_dotenv()

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from meshing import load_mesh  # noqa: E402
from utilities import SnapshotWriter, write_triangle_snapshot  # noqa: E402

log = logging.getLogger(__name__)


# =============================================================================
# Solver Factory
# =============================================================================


def create_solver(cfg: DictConfig, mesh):
    """Instantiate the solver from the solver subtree, passing the mesh."""
    solver_cfg = OmegaConf.to_container(cfg.solver, resolve=True)
    solver_cfg.pop("name", None)
    return instantiate(solver_cfg, mesh=mesh, _convert_="partial")


# =============================================================================
# MLflow Logging
# =============================================================================


def setup_mlflow(cfg: DictConfig) -> str:
    """Setup MLflow tracking and return experiment name."""
    tracking_uri = cfg.mlflow.get("tracking_uri", "./mlruns")
    if str(cfg.mlflow.get("mode", "")).lower() in ("files", "local"):
        os.environ.pop("MLFLOW_TRACKING_URI", None)
    os.environ["MLFLOW_TRACKING_URI"] = str(tracking_uri)
    mlflow.set_tracking_uri(tracking_uri)

    experiment_name = cfg.experiment_name
    project_prefix = cfg.mlflow.get("project_prefix", "")
    if project_prefix and not experiment_name.startswith("/"):
        experiment_name = f"{project_prefix}/{experiment_name}"

    mlflow.set_experiment(experiment_name)
    return experiment_name


def log_metrics_and_timeseries(solver, run_id: str):
    """Log final metrics and timeseries to MLflow."""
    mlflow.log_metrics(solver.metrics.to_mlflow())

    if solver.time_series is not None:
        batch_metrics = solver.time_series.to_mlflow_batch()
        if batch_metrics:
            MlflowClient().log_batch(run_id=run_id, metrics=batch_metrics)


def log_fields(solver):
    """Save solution fields as zarr arrays to MLflow artifacts."""
    import tempfile

    import zarr

    fields = solver.fields

    with tempfile.TemporaryDirectory() as tmpdir:
        for name in ["x", "y", "u", "v", "p"]:
            arr = getattr(fields, name)
            zarr_path = Path(tmpdir) / f"{name}.zarr"
            zarr.save(zarr_path, arr)
            mlflow.log_artifact(str(zarr_path), artifact_path="fields")

        log.info("Logged fields: x, y, u, v, p (zarr)")


# =============================================================================
# Main Entry Point
# =============================================================================


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Hydra entry point - runs solver with MLflow tracking."""
    output_dir = Path(hydra.core.hydra_config.HydraConfig.get().runtime.output_dir)

    mesh = load_mesh(cfg.mesh)
    solver = create_solver(cfg, mesh)
    log.info(
        f"Solver: {cfg.solver.name}, mesh={cfg.mesh.kind} (nt={mesh.nt}), "
        f"dt={solver.params.dt}, nu={solver.params.nu}"
    )

    experiment_name = setup_mlflow(cfg)
    log.info(f"MLflow experiment: {experiment_name}")

    run_name = f"{cfg.solver.name}_nt{mesh.nt}_dt{solver.params.dt:g}"
    run_tags = {"solver": cfg.solver.name, "mesh": cfg.mesh.kind}

    callback = None
    if cfg.get("write_snapshots", True):
        callback = SnapshotWriter(output_dir / "plot", every=cfg.get("snapshot_every", 1))

    with mlflow.start_run(run_name=run_name, tags=run_tags) as run:
        mlflow.log_params(solver.params.to_mlflow())
        mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        if solver.params.initial_stokes:
            solver.solve_stokes()
            if callback is not None:
                write_triangle_snapshot(output_dir / "plot" / "solution.txt", mesh, solver.solution)

        log.info("Starting time loop...")
        solver.solve(callback=callback)

        log_metrics_and_timeseries(solver, run.info.run_id)
        log_fields(solver)

        if cfg.get("save_h5", True):
            h5_path = output_dir / "solution.h5"
            solver.save(h5_path)
            mlflow.log_artifact(str(h5_path))

        if cfg.get("plot", True):
            from utilities.plotting import plot_solution, plot_time_series

            fig_path = output_dir / "solution.png"
            plot_solution(mesh, solver.solution, filepath=fig_path)
            plot_time_series(solver.time_series, filepath=output_dir / "history.png")
            mlflow.log_artifact(str(fig_path), artifact_path="plots")
            mlflow.log_artifact(str(output_dir / "history.png"), artifact_path="plots")

        log.info(
            f"Done: {solver.metrics.steps} steps, t={solver.metrics.final_time:.3g}, "
            f"energy={solver.metrics.final_energy:.6e}, "
            f"time={solver.metrics.wall_time_seconds:.2f}s"
        )


if __name__ == "__main__":
    main()
