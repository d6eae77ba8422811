#!/usr/bin/env python3
"""
Spectral Filter Main - demo entry point for polynomial graph filtering.

Filters a unit impulse on a path graph with a Mexican-hat wavelet bank and
prints the response norm per scale.

Examples:
    # 200-node path, 4 wavelet scales, CPU recurrence
    python spectral_filter_main.py

    # Impulse at node 10, order-50 polynomials, GPU recurrence
    python spectral_filter_main.py -n 500 --impulse 10 --max-order 50 --backend accelerated
"""
import argparse
import sys
import time

import torch

from spectral_filter import (
    FilterKind,
    RecurrenceEngine,
    apply_recurrence,
    compute_coefficients,
    create_filter_bank,
    dense_nbytes,
    estimate_lambda_max,
    path_graph_laplacian,
    sparse_nbytes,
)


# Default filter config
DEFAULT_CONFIG = {
    "nodes": 200,
    "impulse": 100,
    "num_scales": 4,
    "max_order": 30,
    "grid_order": 0,
    "low_pass_factor": 20.0,
    "dtype": "float32",
    "backend": "sequential",
}

DTYPES = {
    "float32": torch.float32,
    "float64": torch.float64,
}


def run_filter(cfg: dict, lambda_max: float = None) -> int:
    dtype = DTYPES[cfg["dtype"]]
    n = cfg["nodes"]

    L = path_graph_laplacian(n, dtype=dtype, device=torch.device('cpu'))
    signal = torch.zeros(n, dtype=dtype)
    signal[cfg["impulse"]] = 1.0

    if lambda_max is None:
        lambda_max = estimate_lambda_max(L)
    print(f"lambda_max: {lambda_max:.4f}")

    bank = create_filter_bank(
        FilterKind.MEXICAN_HAT, lambda_max, cfg["num_scales"], cfg["low_pass_factor"]
    )
    if bank.is_empty:
        print("Could not build filter bank", file=sys.stderr)
        return 1
    print(bank)

    coeffs = compute_coefficients(
        bank, cfg["max_order"], cfg["grid_order"], interval=(0.0, lambda_max), dtype=dtype
    )

    engine = RecurrenceEngine()
    backend = cfg["backend"]
    if backend == "accelerated":
        if not engine.check_fits_in_device_memory(sparse_nbytes(L), dense_nbytes(signal)):
            print(f"Inputs do not fit on {engine.device}, falling back to sequential")
            backend = "sequential"

    t0 = time.time()
    results = apply_recurrence(L, signal, coeffs, backend=backend, engine=engine)
    if results is None and backend == "accelerated":
        print("accelerated recurrence failed, falling back to sequential")
        backend = "sequential"
        results = apply_recurrence(L, signal, coeffs, backend=backend, engine=engine)
    elapsed = time.time() - t0

    if results is None:
        print(f"{backend} recurrence failed", file=sys.stderr)
        return 1

    device = engine.device if backend == "accelerated" else torch.device('cpu')
    for i, r in enumerate(results):
        print(f"  scale {i}: |g(L) x| = {torch.linalg.norm(r).item():.6f}")
    print(f"{backend} on {device}: {elapsed * 1000:.1f} ms")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Polynomial spectral graph filtering demo")
    parser.add_argument("-n", "--nodes", type=int, default=DEFAULT_CONFIG["nodes"])
    parser.add_argument("--impulse", type=int, default=None,
                        help="Node carrying the unit impulse (default: middle node)")
    parser.add_argument("-s", "--num-scales", type=int, default=DEFAULT_CONFIG["num_scales"])
    parser.add_argument("-k", "--max-order", type=int, default=DEFAULT_CONFIG["max_order"])
    parser.add_argument("--grid-order", type=int, default=DEFAULT_CONFIG["grid_order"])
    parser.add_argument("--low-pass-factor", type=float, default=DEFAULT_CONFIG["low_pass_factor"])
    parser.add_argument("--lambda-max", type=float, default=None,
                        help="Largest Laplacian eigenvalue (estimated if omitted)")
    parser.add_argument("--dtype", choices=sorted(DTYPES), default=DEFAULT_CONFIG["dtype"])
    parser.add_argument("--backend", choices=["sequential", "accelerated"],
                        default=DEFAULT_CONFIG["backend"])
    args = parser.parse_args()

    cfg = dict(DEFAULT_CONFIG)
    cfg.update(
        nodes=args.nodes,
        impulse=args.impulse if args.impulse is not None else args.nodes // 2,
        num_scales=args.num_scales,
        max_order=args.max_order,
        grid_order=args.grid_order,
        low_pass_factor=args.low_pass_factor,
        dtype=args.dtype,
        backend=args.backend,
    )

    if not 0 <= cfg["impulse"] < cfg["nodes"]:
        parser.error(f"--impulse must be in [0, {cfg['nodes']})")

    return run_filter(cfg, args.lambda_max)


if __name__ == "__main__":
    sys.exit(main())
