"""
Spectral Filter - Polynomial approximation of spectral graph filters.

Applies g(L) @ signal for a bank of kernels g without an eigendecomposition:
each kernel is fitted with Chebyshev quadrature, then applied with repeated
sparse mat-vecs on the CPU or on a GPU.

Main API:
    - create_filter_bank: Build a named bank (Mexican hat) from spectrum bounds
    - wavelet_scales: Log-spaced scales between spectrum bounds
    - compute_coefficients: Per-scale polynomial coefficients
    - RecurrenceEngine: Sequential and accelerated recurrence backends
    - apply_recurrence: Run a chosen backend

Example:
    >>> from spectral_filter import (
    ...     FilterKind, create_filter_bank, compute_coefficients,
    ...     RecurrenceEngine, path_graph_laplacian, estimate_lambda_max,
    ...     sparse_nbytes, dense_nbytes,
    ... )
    >>>
    >>> L = path_graph_laplacian(100)
    >>> signal = torch.zeros(100); signal[50] = 1.0
    >>> lmax = estimate_lambda_max(L)
    >>>
    >>> bank = create_filter_bank(FilterKind.MEXICAN_HAT, lmax, num_scales=4)
    >>> coeffs = compute_coefficients(bank, max_order=30, interval=(0.0, lmax))
    >>>
    >>> engine = RecurrenceEngine()
    >>> if engine.check_fits_in_device_memory(sparse_nbytes(L), dense_nbytes(signal)):
    ...     results = engine.apply_accelerated(L, signal, coeffs)
    ... else:
    ...     results = engine.apply_sequential(L, signal, coeffs)
"""

from .functions import (
    ScalarFunction,
    Scale,
    Power,
    Negate,
    Exponential,
    XTimesExpMinusX,
    mexican_hat_bias,
    mexican_hat_wavelet,
)

from .factory import (
    FilterKind,
    FilterBank,
    create_filter_bank,
    wavelet_scales,
    compute_coefficients,
    chebyshev_coefficient,
)

from .engine import RecurrenceEngine, apply_recurrence

from .laplacian import (
    as_sparse_laplacian,
    as_signal,
    sparse_nbytes,
    dense_nbytes,
    estimate_lambda_max,
    laplacian_from_edges,
    path_graph_laplacian,
)

__all__ = [
    # Kernel functions
    'ScalarFunction',
    'Scale',
    'Power',
    'Negate',
    'Exponential',
    'XTimesExpMinusX',
    'mexican_hat_bias',
    'mexican_hat_wavelet',

    # Filter banks and coefficients
    'FilterKind',
    'FilterBank',
    'create_filter_bank',
    'wavelet_scales',
    'compute_coefficients',
    'chebyshev_coefficient',

    # Recurrence
    'RecurrenceEngine',
    'apply_recurrence',

    # Laplacian and signal adapters
    'as_sparse_laplacian',
    'as_signal',
    'sparse_nbytes',
    'dense_nbytes',
    'estimate_lambda_max',
    'laplacian_from_edges',
    'path_graph_laplacian',
]
