"""Tests for the pluggable PCG preconditioners."""

import numpy as np
import pytest

from solvers.pcg.preconditioners import (
    DiagonalPreconditioner,
    IdentityPreconditioner,
    JacobiPreconditioner,
    create_preconditioner,
)


@pytest.fixture
def residual():
    return np.array([1.0, -2.0, 3.0, 0.5])


@pytest.fixture
def adiag():
    return np.array([2.0, 4.0, 0.0, 0.5])


class TestVariants:
    def test_diagonal_multiplies(self, residual, adiag):
        """Diagonal variant scales by the stencil diagonal."""
        out = DiagonalPreconditioner().apply(residual, adiag)
        assert np.array_equal(out, [2.0, -8.0, 0.0, 0.25])

    def test_jacobi_divides_and_skips_zero_diagonal(self, residual, adiag):
        """Jacobi divides, leaving zero-diagonal entries as they are."""
        out = JacobiPreconditioner().apply(residual, adiag)
        assert np.array_equal(out, [0.5, -0.5, 3.0, 1.0])

    def test_identity_copies(self, residual, adiag):
        """Identity returns a fresh copy of the residual."""
        out = IdentityPreconditioner().apply(residual, adiag)
        assert np.array_equal(out, residual)
        assert out is not residual

    @pytest.mark.parametrize(
        "prec", [DiagonalPreconditioner(), JacobiPreconditioner(), IdentityPreconditioner()]
    )
    def test_writes_into_out(self, prec, residual, adiag):
        """Every variant fills and returns the given buffer."""
        out = np.full(4, np.nan)
        result = prec.apply(residual, adiag, out=out)
        assert result is out
        assert np.all(np.isfinite(out))


class TestFactory:
    @pytest.mark.parametrize(
        "name,cls",
        [
            ("diagonal", DiagonalPreconditioner),
            ("Jacobi", JacobiPreconditioner),
            ("identity", IdentityPreconditioner),
            ("none", IdentityPreconditioner),
        ],
    )
    def test_names(self, name, cls):
        """Names resolve case-insensitively."""
        assert isinstance(create_preconditioner(name), cls)

    def test_instance_passes_through(self):
        """Instances are used as-is."""
        prec = JacobiPreconditioner()
        assert create_preconditioner(prec) is prec

    def test_unknown_name(self):
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown preconditioner"):
            create_preconditioner("ilu")
