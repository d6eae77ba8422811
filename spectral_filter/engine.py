"""
Polynomial recurrence engine: applies a coefficient table to a signal.

For each scale i with coefficients c_i[0..M-1]:

    v   = signal
    acc = 0
    for j = 1..M-1:
        v   = L @ v
        acc = acc + c_i[j] * v

Cost is one sparse mat-vec per order per scale:
O(num_scales * max_order * nnz(L)). The order-0 term is not applied.

Two backends share that contract:
    - apply_sequential: host (CPU) tensors
    - apply_accelerated: copies L, signal and coefficients to self.device,
      runs the same loop there, copies each scale's result back as it finishes

Backend choice is left to the caller (see apply_recurrence). A failed
accelerated run is not retried on the CPU here.
"""

import logging
from typing import List, Optional

import torch

from .laplacian import DEVICE, as_signal, as_sparse_laplacian, dense_nbytes, sparse_nbytes

logger = logging.getLogger(__name__)

CPU = torch.device('cpu')


def _run_recurrence(
    L: torch.Tensor,
    signal: torch.Tensor,
    coeffs: torch.Tensor,
    out_device: Optional[torch.device] = None
) -> List[torch.Tensor]:
    """
    Per-scale recurrence on whatever device the inputs live on.

    When out_device is given, each scale's accumulator is moved there as soon
    as that scale finishes, so at most one accumulator lives on the input
    device at a time.
    """
    results = []
    num_scales, num_coeffs = coeffs.shape

    for i in range(num_scales):
        # Both buffers start fresh for every scale
        v = signal
        acc = torch.zeros_like(signal)

        j = 1
        while j < num_coeffs:
            v = torch.sparse.mm(L, v.unsqueeze(1)).squeeze(1)
            acc = acc + coeffs[i, j] * v
            j += 1

        if out_device is not None:
            acc = acc.to(out_device)
        results.append(acc)

    return results


class RecurrenceEngine:
    """
    Applies per-scale polynomial filters with sparse mat-vecs.

    The engine holds no state between calls; self.device only selects where
    apply_accelerated runs and which memory the fit check queries.
    """

    def __init__(self, device: Optional[torch.device] = None):
        if device is None:
            device = DEVICE
        self.device = torch.device(device)

    def apply_sequential(
        self,
        laplacian,
        signal,
        coeffs: torch.Tensor
    ) -> Optional[List[torch.Tensor]]:
        """
        Apply the recurrence on the CPU.

        Args:
            laplacian: Sparse (n x n) Laplacian (any type as_sparse_laplacian accepts)
            signal: Signal of length n
            coeffs: Coefficient table (num_scales, max_order + 1)

        Returns:
            One filtered signal (n,) per scale, or None if the sparse
            multiply failed
        """
        dtype = coeffs.dtype
        L = as_sparse_laplacian(laplacian, dtype=dtype, device=CPU)
        x = as_signal(signal, dtype=dtype, device=CPU)

        try:
            return _run_recurrence(L, x, coeffs.to(CPU))
        except RuntimeError as e:
            logger.error("RecurrenceEngine.apply_sequential: %s", e)
            return None

    def apply_accelerated(
        self,
        laplacian,
        signal,
        coeffs: torch.Tensor
    ) -> Optional[List[torch.Tensor]]:
        """
        Apply the recurrence on self.device.

        Steps: fit check, host-to-device copy, on-device recurrence,
        device-to-host copy of each scale's result as soon as it is done.

        Returns:
            One filtered signal (n,) per scale on the CPU, or None when the
            inputs do not fit or a transfer fails
        """
        dtype = coeffs.dtype
        L_host = as_sparse_laplacian(laplacian, dtype=dtype)
        x_host = as_signal(signal, dtype=dtype)

        if not self.check_fits_in_device_memory(sparse_nbytes(L_host), dense_nbytes(x_host)):
            logger.error(
                "RecurrenceEngine.apply_accelerated: inputs do not fit in %s memory",
                self.device,
            )
            return None

        L_dev = x_dev = coeffs_dev = None
        try:
            try:
                L_dev = as_sparse_laplacian(L_host, dtype=dtype, device=self.device)
                x_dev = as_signal(x_host, dtype=dtype, device=self.device)
                coeffs_dev = coeffs.to(self.device)
            except RuntimeError as e:
                logger.error("RecurrenceEngine.apply_accelerated: transfer failed: %s", e)
                return None

            try:
                return _run_recurrence(L_dev, x_dev, coeffs_dev, out_device=CPU)
            except RuntimeError as e:
                logger.error("RecurrenceEngine.apply_accelerated: %s", e)
                return None
        finally:
            del L_dev, x_dev, coeffs_dev
            if self.device.type == 'cuda':
                torch.cuda.empty_cache()

    def check_fits_in_device_memory(self, matrix_size: int, signal_size: int) -> bool:
        """
        Pre-flight check that matrix_size + signal_size bytes fit on self.device.

        CUDA devices are compared against their free memory. CPU devices
        always fit.
        """
        required = matrix_size + signal_size
        if self.device.type == 'cpu':
            return True
        if self.device.type != 'cuda' or not torch.cuda.is_available():
            return False

        try:
            free, _total = torch.cuda.mem_get_info(self.device)
        except RuntimeError as e:
            logger.error("RecurrenceEngine.check_fits_in_device_memory: %s", e)
            return False

        logger.debug(
            "Input size: %d MB, max allocable: %d MB",
            required // (1024 * 1024), free // (1024 * 1024),
        )
        return required <= free


def apply_recurrence(
    laplacian,
    signal,
    coeffs: torch.Tensor,
    backend: str = 'sequential',
    engine: Optional[RecurrenceEngine] = None
) -> Optional[List[torch.Tensor]]:
    """
    Run the recurrence on an explicitly chosen backend.

    Args:
        laplacian: Sparse (n x n) Laplacian
        signal: Signal of length n
        coeffs: Coefficient table (num_scales, max_order + 1)
        backend: 'sequential' or 'accelerated'
        engine: Engine to use (a default-device engine if None)

    Returns:
        Per-scale results, or None on failure
    """
    if engine is None:
        engine = RecurrenceEngine()

    logger.debug("apply_recurrence: backend=%s device=%s", backend, engine.device)
    if backend == 'sequential':
        return engine.apply_sequential(laplacian, signal, coeffs)
    if backend == 'accelerated':
        return engine.apply_accelerated(laplacian, signal, coeffs)
    raise ValueError(f"Unknown backend: {backend!r}")
