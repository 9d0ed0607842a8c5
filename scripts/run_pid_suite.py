#!/usr/bin/env python3
"""
run_pid_suite.py
Runs the PID tracking scenarios (step, square, uneven square, sine) against
a point-mass plant and writes one Time,Target,State CSV per scenario.

Usage:
  python -m scripts.run_pid_suite --config configs/pid_suite.yaml --out-dir artifacts/test_results

Exit code is 1 at the first scenario that fails to stabilize, 0 otherwise.
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from control.pid import PIDParameters
from sim.targets import get_waveform
from sim.tracking import run_tracking


@dataclass
class Scenario:
    name: str
    waveform: str
    max_t: float
    should_stabilize: bool = True


DEFAULT_PARAMS = PIDParameters(k_p=5.0, k_i=5.0, k_d=5.0)
DEFAULT_SCENARIOS = [
    Scenario("step_function", "step", 10.0, True),
    Scenario("square_wave", "square", 100.0, True),
    Scenario("uneven_square_wave", "uneven_square", 100.0, True),
    Scenario("sinusoid", "sine", 10.0, False),
]


@dataclass
class SuiteConfig:
    params: PIDParameters
    scenarios: list[Scenario]
    dt: float = 0.01
    tolerance: float = 0.05


def load_suite_config(path: str | None) -> SuiteConfig:
    if not path or not os.path.exists(path):
        return SuiteConfig(DEFAULT_PARAMS, list(DEFAULT_SCENARIOS))
    with open(path, "r") as f:
        cfg = yaml.safe_load(f) or {}
    g = cfg.get("gains") or {}
    params = PIDParameters(
        k_p=float(g.get("kp", DEFAULT_PARAMS.k_p)),
        k_i=float(g.get("ki", DEFAULT_PARAMS.k_i)),
        k_d=float(g.get("kd", DEFAULT_PARAMS.k_d)),
    )
    scenarios = [
        Scenario(
            name=str(s["name"]),
            waveform=str(s.get("waveform", s["name"])),
            max_t=float(s.get("max_t", 10.0)),
            should_stabilize=bool(s.get("should_stabilize", True)),
        )
        for s in cfg.get("scenarios") or []
    ] or list(DEFAULT_SCENARIOS)
    return SuiteConfig(
        params=params,
        scenarios=scenarios,
        dt=float(cfg.get("dt", 0.01)),
        tolerance=float(cfg.get("tolerance", 0.05)),
    )


# MLflow is optional: if not installed, we just skip logging to it.
def try_mlflow_log(params: PIDParameters, metrics: dict[str, float]) -> None:
    try:
        import mlflow
    except Exception:
        print("MLflow not available; skipping MLflow logging.")
        return
    try:
        mlflow.set_tracking_uri("file:./mlruns")
        mlflow.set_experiment("pid_suite")
        with mlflow.start_run(run_name="pid_suite"):
            mlflow.log_params({"kp": params.k_p, "ki": params.k_i, "kd": params.k_d})
            mlflow.log_metrics(metrics)
        print("Logged to MLflow.")
    except Exception as e:
        print(f"MLflow logging failed: {e}")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="PID tracking suite: target -> PID -> point mass")
    ap.add_argument("--config", default="configs/pid_suite.yaml")
    ap.add_argument("--out-dir", default="artifacts/test_results")
    ap.add_argument("--dt", type=float, default=None, help="override timestep from config")
    ap.add_argument("--only", default=None, help="run a single scenario by name")
    ap.add_argument("--mlflow", action="store_true", help="log final errors to MLflow")
    args = ap.parse_args(argv)

    cfg = load_suite_config(args.config)
    dt = args.dt if args.dt is not None else cfg.dt
    scenarios = [s for s in cfg.scenarios if args.only is None or s.name == args.only]
    if not scenarios:
        raise SystemExit(f"No scenario named {args.only!r}")

    out_dir = Path(args.out_dir)
    final_errors: dict[str, float] = {}
    for sc in scenarios:
        csv_path = out_dir / f"{sc.name}.csv"
        try:
            res = run_tracking(
                cfg.params,
                get_waveform(sc.waveform),
                sc.max_t,
                dt,
                should_stabilize=sc.should_stabilize,
                tolerance=cfg.tolerance,
                csv_path=csv_path,
            )
        except OSError as e:
            print(f"[FAIL] {sc.name}: could not write {csv_path}: {e}")
            return 1

        final_errors[f"{sc.name}_final_err"] = abs(res.final_error)
        status = "ok" if res.stabilized else "FAIL"
        print(
            f"[{status}] {sc.name}: samples={len(res.samples)}  "
            f"final_err={res.final_error:+.4f}  Wrote: {csv_path}"
        )
        if not res.stabilized:
            return 1

    if args.mlflow:
        try_mlflow_log(cfg.params, final_errors)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
