"""
Dye transport runner - Hydra + MLflow integration for the MFPCG solver.

Each step:
    1. Build the right-hand side with the skew-symmetric advective term
    2. Solve the implicit diffusion system with MFPCG
    3. Write the solution back and re-apply the constraint masks

Usage:
    uv run python run_solver.py
    uv run python run_solver.py height=128 width=128 solver.preconditioner=jacobi
    uv run python run_solver.py -m solver.preconditioner=diagonal,jacobi,identity

MLflow modes:
    files  - file-based ./mlruns (default)
    remote - tracking_uri from config / .env
"""

import logging
import os
import sys
import tempfile
from pathlib import Path

import hydra
import mlflow
import numpy as np
import pandas as pd
from dotenv import load_dotenv
from hydra.utils import instantiate
from omegaconf import DictConfig, OmegaConf
from rich.console import Console
from rich.table import Table

# Load .env file (for MLflow credentials)
load_dotenv()

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from grid import ConstraintMask, skew_symmetric_advection  # noqa: E402
from solvers.pcg import assemble_diffusion, scatter_solution  # noqa: E402

log = logging.getLogger(__name__)
console = Console()


# =============================================================================
# Scene Setup
# =============================================================================


def create_solver(cfg: DictConfig):
    """Instantiate MFPCG from the solver subtree with the grid size from root."""
    return instantiate(cfg.solver, height=cfg.height, width=cfg.width, _convert_="partial")


def build_mask(shape, sources) -> ConstraintMask:
    """Constraint mask from a list of ``{box: [x0, x1, y0, y1], value}`` entries."""
    mask = ConstraintMask(shape)
    for src in sources:
        x0, x1, y0, y1 = src["box"]
        mask.set_box(x0, x1, y0, y1, src["value"])
    return mask


# =============================================================================
# Time Stepping
# =============================================================================


def step(solver, dye, u, v, dye_mask, cfg: DictConfig):
    """Advance the dye field by one step in place; returns PCG metrics."""
    adv = skew_symmetric_advection(u, v, dye, dx=cfg.dx, dy=cfg.dy)
    rhs = dye - cfg.dt * adv
    assemble_diffusion(solver, rhs, cfg.viscosity, cfg.dt, cfg.dx, cfg.dy)
    metrics = solver.solve()
    scatter_solution(solver, dye)
    dye_mask.apply(dye)
    return metrics


def run(cfg: DictConfig):
    """Run the scene; returns the final dye field and per-step metrics."""
    solver = create_solver(cfg)
    shape = (cfg.height, cfg.width)

    dye_mask = build_mask(shape, cfg.scene.dye_sources)
    velocity_mask = build_mask(shape, cfg.scene.velocity_sources)
    log.info(
        f"Pinned cells: dye={dye_mask.masked_count}, velocity={velocity_mask.masked_count}"
    )

    dye = dye_mask.apply(np.zeros(shape))
    u = velocity_mask.apply(np.zeros(shape))
    v = np.zeros(shape)

    rows = []
    for i in range(cfg.steps):
        metrics = step(solver, dye, u, v, dye_mask, cfg)
        rows.append({"step": i, "total_dye": float(dye.sum()), **metrics.to_mlflow()})
        log.info(
            f"Step {i}: iterations={metrics.iterations}, converged={metrics.converged}, "
            f"residual={metrics.final_residual:.3e}"
        )
        if mlflow.active_run():
            mlflow.log_metrics(
                {
                    "pcg_iterations": metrics.iterations,
                    "pcg_residual": metrics.final_residual,
                    "pcg_converged": float(metrics.converged),
                    "total_dye": float(dye.sum()),
                },
                step=i,
            )

    return dye, pd.DataFrame(rows)


# =============================================================================
# MLflow Logging
# =============================================================================


def setup_mlflow(cfg: DictConfig) -> str:
    """Setup MLflow tracking and return experiment name."""
    tracking_uri = cfg.mlflow.get("tracking_uri", "./mlruns")
    # If defaulting to local file backend, clear any env override
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


def log_results(dye: np.ndarray, steps: pd.DataFrame):
    """Save the final dye field (zarr) and step table (csv) as artifacts."""
    import zarr

    with tempfile.TemporaryDirectory() as tmpdir:
        zarr_path = Path(tmpdir) / "dye.zarr"
        zarr.save(str(zarr_path), dye)
        mlflow.log_artifact(str(zarr_path), artifact_path="fields")

        csv_path = Path(tmpdir) / "steps.csv"
        steps.to_csv(csv_path, index=False)
        mlflow.log_artifact(str(csv_path))

    log.info("Logged fields: dye (zarr), steps (csv)")


def print_summary(steps: pd.DataFrame):
    table = Table(title="MFPCG steps")
    for col in ("step", "iterations", "converged", "final_residual", "total_dye"):
        table.add_column(col)
    for row in steps.itertuples(index=False):
        table.add_row(
            str(row.step),
            str(int(row.iterations)),
            "[green]yes[/green]" if row.converged else "[red]no[/red]",
            f"{row.final_residual:.3e}",
            f"{row.total_dye:.4f}",
        )
    console.print(table)


# =============================================================================
# Main Entry Point
# =============================================================================


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Hydra entry point - runs the scene with MLflow tracking."""
    log.info(f"Grid {cfg.height}x{cfg.width}, steps={cfg.steps}, solver={cfg.solver.preconditioner}")

    experiment_name = setup_mlflow(cfg)
    log.info(f"MLflow experiment: {experiment_name}")

    run_name = f"{cfg.solver.preconditioner}_{cfg.height}x{cfg.width}"
    with mlflow.start_run(run_name=run_name):
        mlflow.log_dict(OmegaConf.to_container(cfg, resolve=True), "config.yaml")
        mlflow.log_params(
            {
                "height": cfg.height,
                "width": cfg.width,
                "dt": cfg.dt,
                "viscosity": cfg.viscosity,
                **{k: str(v) for k, v in cfg.solver.items() if not k.startswith("_")},
            }
        )

        dye, steps = run(cfg)
        log_results(dye, steps)

    n_failed = int((~steps["converged"].astype(bool)).sum())
    if n_failed:
        log.warning(f"{n_failed} of {len(steps)} steps did not converge")
    print_summary(steps)


if __name__ == "__main__":
    main()
