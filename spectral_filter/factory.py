"""
Filter bank construction and Chebyshev coefficient quadrature.

A filter bank is an ordered list of kernels: index 0 is the low-pass (bias)
kernel, indices 1..N are wavelet kernels at decreasing scales. Each kernel is
turned into polynomial coefficients so that g(L) @ signal can later be applied
with sparse mat-vecs only (see engine.py).

MATHEMATICAL FRAMEWORK
======================

For a kernel g on [a, b], let a1 = (b - a)/2 and a2 = (b + a)/2 so that
x = a1*cos(theta) + a2 maps theta in [0, pi] onto [a, b]. With N quadrature
nodes theta_i = pi*(i - 0.5)/N, i = 1..N (Chebyshev-Gauss):

    c_k = (2/N) * sum_i g(a1*cos(theta_i) + a2) * cos(k * theta_i)

for k = 0..max_order. c_0 is halved (standard Chebyshev convention), so a
constant kernel g = c gives c_0 = c and c_k = 0 for 0 < k < 2N.
"""

import logging
import math
from enum import Enum
from typing import Iterator, List, Sequence, Tuple

import torch

from .functions import ScalarFunction, mexican_hat_bias, mexican_hat_wavelet

logger = logging.getLogger(__name__)


class FilterKind(Enum):
    MEXICAN_HAT = 'mexican_hat'
    MEYER = 'meyer'
    ABSPLINE3 = 'abspline3'
    UNDEFINED = 'undefined'


class FilterBank:
    """
    Ordered, immutable sequence of kernels, one per scale.

    An empty bank means construction failed (unsupported kind or invalid
    spectrum bounds) and must not be passed on to quadrature.
    """

    def __init__(self, kernels: Sequence[ScalarFunction] = ()):
        self._kernels: Tuple[ScalarFunction, ...] = tuple(kernels)

    def __len__(self) -> int:
        return len(self._kernels)

    def __getitem__(self, i: int) -> ScalarFunction:
        return self._kernels[i]

    def __iter__(self) -> Iterator[ScalarFunction]:
        return iter(self._kernels)

    @property
    def is_empty(self) -> bool:
        return len(self._kernels) == 0

    def __str__(self) -> str:
        return "\n".join(f"[{i}] {g}" for i, g in enumerate(self._kernels))

    def __repr__(self) -> str:
        return f"FilterBank({len(self)} kernels)"


# ============================================================
# Scale selection
# ============================================================

def wavelet_scales(lambda_min: float, lambda_max: float, num_scales: int) -> List[float]:
    """
    Wavelet scales adapted to the spectrum bounds.

    Scales are log-spaced between the minimum and maximum "effective" scales:
    below s_min = 1/lambda_max or above s_max = 2/lambda_min the kernel shape
    no longer changes on the spectrum, so extra scales there are redundant.

    Args:
        lambda_min: Smallest nonzero eigenvalue (or its low-pass estimate)
        lambda_max: Largest eigenvalue
        num_scales: Number of wavelet scales

    Returns:
        num_scales values decreasing from s_max to s_min, or [] when any
        argument is not positive
    """
    if lambda_min <= 0 or lambda_max <= 0 or num_scales <= 0:
        return []

    t1, t2 = 1.0, 2.0
    s_min = t1 / lambda_max
    s_max = t2 / lambda_min

    log_scales = torch.linspace(math.log(s_max), math.log(s_min), num_scales, dtype=torch.float64)
    return torch.exp(log_scales).tolist()


# ============================================================
# Filter banks
# ============================================================

def _build_mexican_hat(lambda_max: float, num_scales: int, low_pass_factor: float) -> FilterBank:
    if low_pass_factor <= 0:
        logger.warning("low_pass_factor must be positive, got %g", low_pass_factor)
        return FilterBank()

    lambda_min = lambda_max / low_pass_factor
    scales = wavelet_scales(lambda_min, lambda_max, num_scales)
    if not scales:
        logger.warning(
            "No wavelet scales for lambda_min=%g, lambda_max=%g, num_scales=%d",
            lambda_min, lambda_max, num_scales,
        )
        return FilterBank()

    kernels = [mexican_hat_bias(lambda_min)]
    kernels.extend(mexican_hat_wavelet(t) for t in scales)
    return FilterBank(kernels)


def create_filter_bank(
    kind: FilterKind,
    lambda_max: float,
    num_scales: int,
    low_pass_factor: float = 20.0
) -> FilterBank:
    """
    Build a named filter bank from spectrum bounds.

    Bank order is [bias, wavelet(s_0), ..., wavelet(s_{N-1})], with the
    effective lambda_min taken as lambda_max / low_pass_factor.

    Returns:
        The bank, or an empty bank when the kind is not implemented or the
        bounds are invalid
    """
    if kind is FilterKind.MEXICAN_HAT:
        return _build_mexican_hat(lambda_max, num_scales, low_pass_factor)

    # MEYER and ABSPLINE3 are reserved kinds without builders yet
    logger.warning("Filter kind %r is not implemented", kind)
    return FilterBank()


# ============================================================
# Chebyshev coefficients
# ============================================================

def _quadrature_nodes(grid_order: int, interval: Tuple[float, float], dtype: torch.dtype):
    """
    Chebyshev-Gauss angles and the mapped sample points on [a, b].

    theta stays float64 so every cos(k * theta) argument is formed in double
    precision; only cosines are cast to the working type.
    """
    a, b = interval
    a1 = (b - a) / 2.0
    a2 = (b + a) / 2.0

    i = torch.arange(1, grid_order + 1, dtype=torch.float64)
    theta = math.pi * (i - 0.5) / grid_order
    x = a1 * torch.cos(theta).to(dtype) + a2
    return theta, x


def chebyshev_coefficient(
    g: ScalarFunction,
    order: int,
    grid_order: int,
    interval: Tuple[float, float] = (-1.0, 1.0),
    dtype: torch.dtype = torch.float32
) -> float:
    """
    Single quadrature sum (2/N) * sum_i g(x_i) * cos(order * theta_i).

    No half-weighting is applied here, so order 0 returns twice the mean of g
    over the nodes.
    """
    theta, x = _quadrature_nodes(grid_order, interval, dtype)
    weights = torch.cos(order * theta).to(dtype)
    return (2.0 * torch.dot(g(x), weights) / grid_order).item()


def compute_coefficients(
    bank: FilterBank,
    max_order: int,
    grid_order: int = 0,
    interval: Tuple[float, float] = (-1.0, 1.0),
    dtype: torch.dtype = torch.float32
) -> torch.Tensor:
    """
    Chebyshev coefficients for every kernel in a bank.

    Args:
        bank: Filter bank (one kernel per scale)
        max_order: Highest polynomial order
        grid_order: Number of quadrature nodes (0 means max_order + 1)
        interval: Approximation interval [a, b]
        dtype: Scalar type for all arithmetic

    Returns:
        Tensor (len(bank), max_order + 1): row = scale, column = order
    """
    if max_order < 0:
        raise ValueError(f"max_order must be >= 0, got {max_order}")
    if grid_order < 0:
        raise ValueError(f"grid_order must be >= 0, got {grid_order}")
    if grid_order == 0:
        grid_order = max_order + 1

    theta, x = _quadrature_nodes(grid_order, interval, dtype)

    # T_k(cos(theta)) = cos(k * theta)
    k = torch.arange(max_order + 1, dtype=torch.float64)
    T_k_vals = torch.cos(k.unsqueeze(1) * theta.unsqueeze(0)).to(dtype)  # (max_order+1, grid_order)

    coeffs = torch.zeros((len(bank), max_order + 1), dtype=dtype)
    for scale, g in enumerate(bank):
        g_vals = g(x).to(dtype)
        coeffs[scale] = (2.0 / grid_order) * torch.mv(T_k_vals, g_vals)

    coeffs[:, 0] = coeffs[:, 0] / 2.0
    return coeffs
