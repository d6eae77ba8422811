"""
Composable scalar functions used as spectral filter kernels.

Each kernel is a small expression tree. A composite node owns at most one
child and evaluates it first, so g(x) is computed root-to-leaf on every
call with no caching.

All nodes accept torch tensors (vectorized over every sample at once) and
Python floats via evaluate().

Example:
    >>> g = Exponential(Negate(Power(Scale(0.5), 4)))   # exp(-(x/2)^4)
    >>> g.evaluate(2.0)
    0.36787944117144233
"""

import math
from dataclasses import dataclass
from typing import Optional

import torch


class ScalarFunction:
    """Base node: a real function of one real variable."""

    def __call__(self, x: torch.Tensor) -> torch.Tensor:
        raise NotImplementedError

    def evaluate(self, x: float) -> float:
        """Evaluate at a single point in double precision."""
        return self(torch.tensor(x, dtype=torch.float64)).item()

    def _render(self, arg: str) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self._render('x')


def _apply(inner: Optional[ScalarFunction], x: torch.Tensor) -> torch.Tensor:
    """Evaluate the child if there is one, otherwise pass x through."""
    if inner is None:
        return x
    return inner(x)


def _render(inner: Optional[ScalarFunction], arg: str) -> str:
    if inner is None:
        return arg
    return inner._render(arg)


@dataclass(frozen=True)
class Scale(ScalarFunction):
    """factor * x, or factor * inner(x) when wrapping another function."""
    factor: float
    inner: Optional[ScalarFunction] = None

    def __call__(self, x: torch.Tensor) -> torch.Tensor:
        return self.factor * _apply(self.inner, x)

    def _render(self, arg: str) -> str:
        if self.inner is None:
            return f"({arg}*{self.factor:g})"
        return f"{self.factor:g}*{_render(self.inner, arg)}"


@dataclass(frozen=True)
class Power(ScalarFunction):
    """inner(x) ** exponent, integer exponent only."""
    inner: Optional[ScalarFunction]
    exponent: int

    def __post_init__(self):
        if isinstance(self.exponent, bool) or not isinstance(self.exponent, int):
            raise TypeError(f"Power exponent must be an int, got {self.exponent!r}")

    def __call__(self, x: torch.Tensor) -> torch.Tensor:
        return _apply(self.inner, x) ** self.exponent

    def _render(self, arg: str) -> str:
        return f"({_render(self.inner, arg)}^{self.exponent})"


@dataclass(frozen=True)
class Negate(ScalarFunction):
    inner: Optional[ScalarFunction] = None

    def __call__(self, x: torch.Tensor) -> torch.Tensor:
        return -_apply(self.inner, x)

    def _render(self, arg: str) -> str:
        return f"-{_render(self.inner, arg)}"


@dataclass(frozen=True)
class Exponential(ScalarFunction):
    inner: Optional[ScalarFunction] = None

    def __call__(self, x: torch.Tensor) -> torch.Tensor:
        return torch.exp(_apply(self.inner, x))

    def _render(self, arg: str) -> str:
        return f"exp({_render(self.inner, arg)})"


@dataclass(frozen=True)
class XTimesExpMinusX(ScalarFunction):
    """
    y * exp(-y) with y = inner(x).

    With inner = Scale(t) this is the Mexican-hat style wavelet kernel
    (t*x) * exp(-t*x), which peaks at x = 1/t.
    """
    inner: Optional[ScalarFunction] = None

    def __call__(self, x: torch.Tensor) -> torch.Tensor:
        y = _apply(self.inner, x)
        return y * torch.exp(-y)

    def _render(self, arg: str) -> str:
        y = _render(self.inner, arg)
        return f"{y}*exp(-{y})"


# ============================================================
# Kernel builders
# ============================================================

def mexican_hat_bias(lambda_min: float) -> ScalarFunction:
    """
    Low-pass kernel 1.2*e^-1 * exp(-(x / (0.4*lambda_min))^4).

    Args:
        lambda_min: Effective smallest eigenvalue the wavelets resolve

    Returns:
        Bias kernel for index 0 of a Mexican-hat bank
    """
    lmin_fac = 0.4 * lambda_min
    inner = Exponential(Negate(Power(Scale(1.0 / lmin_fac), 4)))
    return Scale(1.2 * math.exp(-1), inner)


def mexican_hat_wavelet(scale: float) -> ScalarFunction:
    """Wavelet kernel (scale*x) * exp(-scale*x)."""
    return XTimesExpMinusX(Scale(scale))
