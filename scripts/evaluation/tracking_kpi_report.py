"""
tracking_kpi_report.py
KPIs for a PID tracking run CSV (Time,Target,State).

- compute_tracking_kpis(...) is the entrypoint used by tests.
- Plotting is optional and needs matplotlib.

Usage:
  python -m scripts.evaluation.tracking_kpi_report --csv artifacts/test_results/step_function.csv
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

try:
    import matplotlib.pyplot as plt  # optional in CI
except Exception:
    plt = None

REQUIRED = ["Time", "Target", "State"]


def _settling_time(t: np.ndarray, target: np.ndarray, err: np.ndarray, tol: float) -> Optional[float]:
    """Time from the last target change until |err| stays below tol.

    Only meaningful for piecewise-constant targets: None if the final target
    segment is a single sample (continuously moving target) or never settles.
    """
    changes = np.flatnonzero(np.diff(target) != 0)
    start = int(changes[-1]) + 1 if changes.size else 0
    if len(t) - start < 2:
        return None
    outside = np.flatnonzero(err[start:] >= tol)
    if outside.size == 0:
        return 0.0
    last_out = start + int(outside[-1])
    if last_out + 1 >= len(t):
        return None
    return float(t[last_out + 1] - t[start])


def compute_tracking_kpis(df: pd.DataFrame, tolerance: float = 0.05) -> dict:
    missing = [c for c in REQUIRED if c not in df.columns]
    if missing:
        raise ValueError(f"missing columns: {missing}")
    if df.empty:
        raise ValueError("empty tracking log")

    t = df["Time"].to_numpy(dtype=float)
    target = df["Target"].to_numpy(dtype=float)
    state = df["State"].to_numpy(dtype=float)
    err = np.abs(target - state)

    dt = float(np.median(np.diff(t))) if len(t) > 1 else 0.0
    k = {
        "samples": int(len(t)),
        "duration_s": float(t[-1] - t[0]),
        "sample_hz": 1.0 / dt if dt > 0 else float("nan"),
        "avg_err": float(err.mean()),
        "rms_err": float(np.sqrt((err**2).mean())),
        "max_err": float(err.max()),
        "final_err": float(err[-1]),
        "settling_s": _settling_time(t, target, err, tolerance),
        "tolerance": float(tolerance),
    }
    k["stabilized"] = bool(k["final_err"] < tolerance)
    return k


def render_tracking_plot(df: pd.DataFrame, save_path: str, title: str = "PID tracking") -> bool:
    """Target vs state over time; returns False if matplotlib is unavailable."""
    if plt is None:
        return False
    plt.figure(figsize=(8, 3))
    plt.plot(df["Time"], df["Target"], label="target", linewidth=1.0)
    plt.plot(df["Time"], df["State"], label="state", linewidth=1.5)
    plt.xlabel("t [s]")
    plt.ylabel("state")
    plt.title(title)
    plt.legend()
    plt.tight_layout()
    plt.savefig(save_path, dpi=150)
    plt.close()
    return True


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Compute KPIs from a PID tracking CSV.")
    ap.add_argument("--csv", default="artifacts/test_results/step_function.csv")
    ap.add_argument("--json-out", default=None, help="Where to write KPI JSON")
    ap.add_argument("--tolerance", type=float, default=0.05)
    ap.add_argument("--plot", default=None, help="Path to save a PNG plot (optional)")
    args = ap.parse_args(argv)

    df = pd.read_csv(args.csv)
    k = compute_tracking_kpis(df, tolerance=args.tolerance)

    json_out = args.json_out or str(Path(args.csv).with_suffix(".kpis.json"))
    Path(json_out).parent.mkdir(parents=True, exist_ok=True)
    with open(json_out, "w") as f:
        json.dump(k, f, indent=2)

    print("Tracking KPIs")
    print(f"- samples={k['samples']}  duration_s={k['duration_s']:.2f}  sample_hz={k['sample_hz']:.1f}")
    print(
        f"- avg_err={k['avg_err']:.4f}  rms_err={k['rms_err']:.4f}  "
        f"max_err={k['max_err']:.4f}  final_err={k['final_err']:.4f}"
    )
    print(f"- settling_s={k['settling_s']}  stabilized={k['stabilized']}")
    print(f"Wrote JSON: {json_out}")

    if args.plot:
        if render_tracking_plot(df, args.plot):
            print(f"Wrote plot: {args.plot}")
        else:
            print("matplotlib not available; skipping plot.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
