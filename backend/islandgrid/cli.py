from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from islandgrid.errors import ConfigurationError
from islandgrid.io import load_series, wind_height_factor, write_trace_csv
from islandgrid.montecarlo import MonteCarloRunner
from islandgrid.parameters import SimInput, SimulationConfig, SystemParameters
from islandgrid.sensitivity import SobolConfig, run_sobol, select_factors


def _load_json(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"JSON file not found: {path}")
    data = json.loads(p.read_text())
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a JSON object")
    return data


def build_input(args: argparse.Namespace) -> SimInput:
    wind_factor = wind_height_factor() if args.wind_shear else 1.0
    series = load_series(
        args.load,
        args.wind,
        expected_length=args.hours,
        load_scale_kw=args.load_scale,
        wind_factor=wind_factor,
    )
    try:
        params = SystemParameters(**_load_json(args.params))
        config = SimulationConfig(**_load_json(args.config))
    except TypeError as e:
        raise ConfigurationError(str(e)) from e
    return SimInput(series.wind_ms, series.total_load_kw, params, config)


def _print_estimate(est: Any) -> None:
    ens = est.ens
    print(f"Iterations: {est.iterations}")
    print(f"ENS: {ens.mean:.1f} kWh (95% CI {ens.ci_low:.1f} .. {ens.ci_high:.1f}), "
          f"required N={ens.required_sample_size}")
    print(f"ENS cat1/cat2: {est.mean_ens_cat1_kwh:.1f} / {est.mean_ens_cat2_kwh:.1f} kWh")
    print(f"Fuel: {est.mean_fuel_liters:.0f} L, moto-hours: {est.mean_moto_hours:.0f}")
    print(f"Load share WT/DG/BT: {est.mean_wt_pct:.1f}% / {est.mean_dg_pct:.1f}% / "
          f"{est.mean_bt_pct:.1f}%, WRE {est.mean_wre_pct:.1f}%")


def _run_montecarlo(args: argparse.Namespace, sim_input: SimInput) -> None:
    runner = MonteCarloRunner(workers=args.workers, remove_outliers=args.remove_outliers)
    want_trace = args.trace is not None
    est = runner.evaluate(
        sim_input,
        args.iterations,
        base_seed=args.seed,
        trace_if_single=want_trace,
    )
    _print_estimate(est)
    if want_trace:
        if est.single_run is None or est.single_run.trace is None:
            print("Trace export needs --iterations 1", file=sys.stderr)
        else:
            rows = write_trace_csv(est.single_run.trace, args.trace)
            print(f"Trace: {rows} hours written to {args.trace}")


def _run_sobol(args: argparse.Namespace, sim_input: SimInput) -> None:
    factors = select_factors(args.factors)
    cfg = SobolConfig(
        n=args.sobol_n,
        mc_iterations=args.iterations,
        base_seed=args.seed,
        factors=factors,
    )
    result = run_sobol(sim_input, cfg, MonteCarloRunner(workers=args.workers))
    data = result.to_dict()
    for metric, block in data["metrics"].items():
        print(f"[{metric}] mean={block['mean']:.3f} var={block['variance']:.3e}")
        for name in data["factors"]:
            print(f"  {name:<30} S={block['first_order'][name]:8.4f} "
                  f"ST={block['total_order'][name]:8.4f}")
    if args.output:
        Path(args.output).write_text(json.dumps(data, indent=2))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Reliability and dispatch simulation of an islanded wind/diesel/battery plant."
    )
    parser.add_argument("--load", required=True, help="Hourly load file (kW or per-unit).")
    parser.add_argument("--wind", required=True, help="Hourly wind speed file (m/s).")
    parser.add_argument("--params", help="JSON object of SystemParameters fields.")
    parser.add_argument("--config", help="JSON object of SimulationConfig fields.")
    parser.add_argument("--hours", type=int, help="Required series length.")
    parser.add_argument("--load-scale", type=float, default=1.0,
                        help="Multiplier applied to the load column.")
    parser.add_argument("--wind-shear", action="store_true",
                        help="Correct wind speed from 50 m to hub height.")
    parser.add_argument("--iterations", "-n", type=int, default=100)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("--remove-outliers", action="store_true")
    parser.add_argument("--trace", help="Write the hourly trace CSV (single iteration).")
    parser.add_argument("--sobol-n", type=int,
                        help="Run a Sobol study with this many rows instead of one evaluation.")
    parser.add_argument("--factors", nargs="+", default=["DG_COUNT", "BT_CAPACITY_PER_BUS"],
                        help="Tunable parameters of the Sobol study.")
    parser.add_argument("--output", "-o", help="Write Sobol indices as JSON.")
    parser.add_argument("--verbose", "-v", action="store_true")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        sim_input = build_input(args)
        if args.sobol_n:
            _run_sobol(args, sim_input)
        else:
            _run_montecarlo(args, sim_input)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        print(f"Input error: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
