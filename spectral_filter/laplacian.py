"""
Sparse Laplacian and signal adapters.

The filter engine treats the Laplacian and the signal as opaque inputs owned
by the caller. This module converts whatever the caller holds (torch sparse,
scipy.sparse, dense numpy/torch) into the torch representation the engine
multiplies with, and provides a few reference Laplacians for tests and demos.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
import scipy.sparse as sp
import torch

# Device selection: GPU if available
DEVICE = torch.device('cuda' if torch.cuda.is_available() else 'cpu')


def as_sparse_laplacian(
    matrix,
    dtype: torch.dtype = torch.float32,
    device: Optional[torch.device] = None
) -> torch.Tensor:
    """
    Convert a square matrix to a coalesced torch.sparse_coo_tensor.

    Args:
        matrix: torch tensor (sparse COO/CSR or dense), scipy.sparse matrix,
            or dense numpy array
        dtype: Element type of the result
        device: Target device (defaults to the input's device, or CPU)

    Returns:
        Sparse (n x n) Laplacian
    """
    if isinstance(matrix, torch.Tensor):
        L = matrix
        if L.layout == torch.sparse_csr:
            L = L.to_sparse_coo()
        elif not L.is_sparse:
            L = L.to_sparse()
    elif sp.issparse(matrix):
        coo = sp.coo_matrix(matrix)
        indices = torch.from_numpy(np.vstack([coo.row, coo.col]).astype(np.int64))
        values = torch.from_numpy(np.asarray(coo.data))
        L = torch.sparse_coo_tensor(indices, values, coo.shape)
    elif isinstance(matrix, np.ndarray):
        L = torch.from_numpy(matrix).to_sparse()
    else:
        raise TypeError(f"Unsupported Laplacian type: {type(matrix).__name__}")

    if L.dim() != 2 or L.shape[0] != L.shape[1]:
        raise ValueError(f"Laplacian must be square, got shape {tuple(L.shape)}")

    if device is None:
        device = L.device
    return L.to(device=device, dtype=dtype).coalesce()


def as_signal(
    signal,
    dtype: torch.dtype = torch.float32,
    device: Optional[torch.device] = None
) -> torch.Tensor:
    """Convert a numpy array, sequence or tensor to a 1D dense tensor."""
    if isinstance(signal, torch.Tensor):
        x = signal
    else:
        x = torch.as_tensor(np.asarray(signal))
    if device is None:
        device = x.device
    return x.reshape(-1).to(device=device, dtype=dtype)


def sparse_nbytes(L: torch.Tensor) -> int:
    """Bytes held by a sparse COO tensor (indices + values)."""
    L = L.coalesce()
    indices = L.indices()
    values = L.values()
    return indices.numel() * indices.element_size() + values.numel() * values.element_size()


def dense_nbytes(x: torch.Tensor) -> int:
    return x.numel() * x.element_size()


def estimate_lambda_max(
    L: torch.Tensor,
    num_iterations: int = 20,
    tol: float = 1e-6
) -> float:
    """
    Estimate largest eigenvalue of L using power iteration.

    Used to pick the spectrum bounds for a filter bank without an
    eigendecomposition.

    Args:
        L: Sparse Laplacian matrix (n x n)
        num_iterations: Maximum iterations for power method
        tol: Convergence tolerance

    Returns:
        Approximate lambda_max (largest eigenvalue), with a 5% safety margin
    """
    n = L.shape[0]
    if n == 0:
        return 0.0

    # Fixed seed so repeated calls give the same bounds
    generator = torch.Generator().manual_seed(123)
    v = torch.randn(n, generator=generator, dtype=L.dtype).to(L.device)
    v = v / torch.linalg.norm(v)

    lambda_est = 0.0
    iteration = 0

    while iteration < num_iterations:
        w = torch.sparse.mm(L, v.unsqueeze(1)).squeeze(1)

        # Rayleigh quotient
        lambda_new = torch.dot(v, w).item()

        w_norm = torch.linalg.norm(w)
        if w_norm < 1e-10:
            break
        v = w / w_norm

        if abs(lambda_new - lambda_est) < tol * abs(lambda_new):
            lambda_est = lambda_new
            break

        lambda_est = lambda_new
        iteration += 1

    # Power iteration approaches lambda_max from below
    return lambda_est * 1.05


# ============================================================
# Reference Laplacians
# ============================================================

def laplacian_from_edges(
    n: int,
    edges: Sequence[Tuple[int, int]],
    weights: Optional[Sequence[float]] = None,
    dtype: torch.dtype = torch.float32,
    device: Optional[torch.device] = None
) -> torch.Tensor:
    """
    Build the combinatorial Laplacian L = D - A of an undirected graph.

    Args:
        n: Number of nodes
        edges: (u, v) pairs, each undirected edge listed once
        weights: Optional edge weights (defaults to 1.0)
        dtype: Element type
        device: Target device (defaults to DEVICE)

    Returns:
        Sparse Laplacian (n x n)
    """
    if device is None:
        device = DEVICE
    if weights is None:
        weights = [1.0] * len(edges)

    rows: List[int] = []
    cols: List[int] = []
    vals: List[float] = []
    degrees = [0.0] * n

    for (u, v), w in zip(edges, weights):
        rows.extend([u, v])
        cols.extend([v, u])
        vals.extend([-w, -w])
        degrees[u] += w
        degrees[v] += w

    # Diagonal entries
    rows.extend(range(n))
    cols.extend(range(n))
    vals.extend(degrees)

    indices = torch.tensor([rows, cols], dtype=torch.long, device=device)
    values = torch.tensor(vals, dtype=dtype, device=device)
    return torch.sparse_coo_tensor(indices, values, (n, n)).coalesce()


def path_graph_laplacian(
    n: int,
    dtype: torch.dtype = torch.float32,
    device: Optional[torch.device] = None
) -> torch.Tensor:
    """Laplacian of the path 0 - 1 - ... - (n-1)."""
    edges = [(i, i + 1) for i in range(n - 1)]
    return laplacian_from_edges(n, edges, dtype=dtype, device=device)
