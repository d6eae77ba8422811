"""
Tests for Laplacian/signal adapters and the spectrum bound estimate.

Run with: pytest tests/test_laplacian.py -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import math

import numpy as np
import pytest
import scipy.sparse as sp
import torch

from spectral_filter import (
    as_signal,
    as_sparse_laplacian,
    dense_nbytes,
    estimate_lambda_max,
    laplacian_from_edges,
    path_graph_laplacian,
    sparse_nbytes,
)

CPU = torch.device('cpu')

PATH_5_DENSE = torch.tensor([
    [1.0, -1.0, 0.0, 0.0, 0.0],
    [-1.0, 2.0, -1.0, 0.0, 0.0],
    [0.0, -1.0, 2.0, -1.0, 0.0],
    [0.0, 0.0, -1.0, 2.0, -1.0],
    [0.0, 0.0, 0.0, -1.0, 1.0],
])


# ============================================================
# TEST 1: Reference Laplacians
# ============================================================

class TestReferenceLaplacians:

    def test_path_graph(self):
        L = path_graph_laplacian(5, device=CPU)
        assert L.is_sparse
        assert torch.allclose(L.to_dense(), PATH_5_DENSE)

    def test_row_sums_zero(self):
        L = path_graph_laplacian(9, device=CPU)
        assert torch.allclose(L.to_dense().sum(dim=1), torch.zeros(9))

    def test_weighted_edges(self):
        L = laplacian_from_edges(3, [(0, 1), (1, 2)], weights=[2.0, 0.5], device=CPU)
        expected = torch.tensor([
            [2.0, -2.0, 0.0],
            [-2.0, 2.5, -0.5],
            [0.0, -0.5, 0.5],
        ])
        assert torch.allclose(L.to_dense(), expected)

    def test_dtype(self):
        L = path_graph_laplacian(4, dtype=torch.float64, device=CPU)
        assert L.dtype == torch.float64


# ============================================================
# TEST 2: Input adapters
# ============================================================

class TestAdapters:

    @pytest.mark.parametrize("convert", [
        lambda d: sp.csr_matrix(d.numpy()),
        lambda d: sp.coo_matrix(d.numpy()),
        lambda d: d.numpy(),
        lambda d: d,
        lambda d: d.to_sparse(),
        lambda d: d.to_sparse_csr(),
    ])
    def test_laplacian_inputs(self, convert):
        L = as_sparse_laplacian(convert(PATH_5_DENSE), dtype=torch.float64, device=CPU)
        assert L.is_sparse
        assert L.dtype == torch.float64
        assert torch.allclose(L.to_dense(), PATH_5_DENSE.double())

    def test_non_square_rejected(self):
        with pytest.raises(ValueError):
            as_sparse_laplacian(np.zeros((2, 3)))

    def test_unsupported_type_rejected(self):
        with pytest.raises(TypeError):
            as_sparse_laplacian([[1.0, 0.0], [0.0, 1.0]])

    def test_signal_from_numpy(self):
        x = as_signal(np.array([[1.0], [2.0]]), dtype=torch.float32)
        assert x.shape == (2,)
        assert x.dtype == torch.float32

    def test_signal_from_list(self):
        x = as_signal([1, 2, 3], dtype=torch.float64)
        assert torch.equal(x, torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64))

    def test_nbytes(self):
        L = path_graph_laplacian(5, device=CPU)
        nnz = 8 + 5
        assert sparse_nbytes(L) == 2 * nnz * 8 + nnz * 4
        assert dense_nbytes(torch.zeros(5, dtype=torch.float64)) == 40


# ============================================================
# TEST 3: Spectrum bound
# ============================================================

class TestLambdaMax:

    def test_path_graph_bound(self):
        n = 5
        true_max = 2.0 + 2.0 * math.cos(math.pi / n)
        est = estimate_lambda_max(path_graph_laplacian(n, dtype=torch.float64, device=CPU))
        assert 0.95 * true_max <= est <= 1.05 * true_max + 1e-6

    def test_diagonal_bound(self):
        L = torch.diag(torch.tensor([1.0, 3.0, 2.0])).to_sparse()
        est = estimate_lambda_max(L)
        assert est == pytest.approx(3.0 * 1.05, rel=1e-2)

    def test_empty_graph(self):
        L = torch.sparse_coo_tensor(torch.zeros((2, 0), dtype=torch.long), torch.zeros(0), (0, 0))
        assert estimate_lambda_max(L) == 0.0
