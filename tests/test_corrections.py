"""Tests for the 2D/3D correction factors."""

import h5py
import numpy as np
import pytest

from constants import TOP
from calculator import MoCCalculator, MoCCalculator2D3D
from coarse_data import CoarseData
from correction_worker import CorrectionData
from output import H5Output
from xs_mesh import XSMeshHomogenized


@pytest.fixture
def coupled(make_mesh, absorber_lib, make_sweep_inputs):
	"""Factory for a 2D/3D sweeper coupled to fresh correction data"""
	def factory(bc, npin=2, nz=2, n_inner=2):
		mesh = make_mesh(bc=bc, npin=npin, nz=nz)
		ang_quad, rays, xs_mesh, source = make_sweep_inputs(mesh, absorber_lib, 1.0)
		corrections = CorrectionData(mesh.n_cell, ang_quad.ndir(), xs_mesh.ng)
		sn_xs_mesh = XSMeshHomogenized(mesh, xs_mesh)
		sweeper = MoCCalculator2D3D(mesh, ang_quad, rays, xs_mesh, source, n_inner,
		                            corrections=corrections, sn_xs_mesh=sn_xs_mesh)
		return sweeper, corrections
	return factory


class TestCorrectionData:
	"""Storage layout of the correction factors."""

	def test_shape(self):
		data = CorrectionData(6, 24, 2)
		assert data.alpha.shape == (6, 24, 2, 2)
		assert data.beta.shape == (6, 24, 2)
		assert data.as_array().shape == (6, 24, 2, 3)

	def test_as_array_order(self):
		data = CorrectionData(1, 8, 1)
		data.alpha[0, 3, 0] = [0.25, 0.75]
		data.beta[0, 3, 0] = 1.5
		assert list(data.as_array()[0, 3, 0]) == [0.25, 0.75, 1.5]

	def test_output(self, tmp_path):
		data = CorrectionData(4, 8, 2)
		data.beta[:] = 1.0
		filename = str(tmp_path/"corrections.h5")
		with H5Output(filename) as sink:
			data.output(sink)
		with h5py.File(filename, "r") as f:
			assert f["corrections/alpha_x"].shape == (4, 8, 2)
			assert f["corrections/alpha_y"].shape == (4, 8, 2)
			assert (f["corrections/beta"][()] == 1.0).all()


class TestUniformMedium:
	"""Correction factors of an infinite uniform medium."""

	def test_alpha_and_beta(self, coupled):
		"""With an isotropic flat flux, alpha is 1/2 and beta is 1."""
		sweeper, corrections = coupled("reflective")
		sweeper.sweep(0)
		assert corrections.alpha == pytest.approx(np.full(corrections.alpha.shape, 0.5), rel=1E-10)
		assert corrections.beta == pytest.approx(np.ones(corrections.beta.shape), rel=1E-10)
		assert sweeper.coarse_data.has_radial_data
		assert sweeper.flux == pytest.approx(np.ones(sweeper.flux.shape), rel=1E-10)


class TestVacuumMedium:
	"""Correction factors with leakage."""

	def test_factors_are_finite_and_mirrored(self, coupled):
		sweeper, corrections = coupled("vacuum")
		sweeper.sweep(0)
		ang_quad = sweeper.ang_quad
		assert np.isfinite(corrections.as_array()).all()
		assert (corrections.alpha > 0).all()
		for iang in range(4*ang_quad.ndir_oct):
			lower = ang_quad.reflect(iang, TOP)
			assert list(corrections.alpha[:, lower, 0, 0]) == list(corrections.alpha[:, iang, 0, 0])
			assert list(corrections.beta[:, lower, 0]) == list(corrections.beta[:, iang, 0])

	def test_beta_of_homogeneous_cells(self, coupled):
		"""A cell of a single material has no cross-section correction."""
		sweeper, corrections = coupled("vacuum")
		sweeper.sweep(0)
		assert corrections.beta == pytest.approx(np.ones(corrections.beta.shape), rel=1E-10)

	def test_observer_does_not_change_the_solution(self, coupled):
		sweeper, corrections = coupled("vacuum")
		plain = MoCCalculator(sweeper.mesh, sweeper.ang_quad, sweeper.rays, sweeper.xs_mesh,
		                      sweeper.source, sweeper.n_inner)
		sweeper.sweep(0)
		plain.sweep(0)
		assert np.allclose(sweeper.flux, plain.flux, rtol=1E-13)

	def test_recomputed_each_sweep(self, coupled):
		sweeper, corrections = coupled("vacuum", n_inner=1)
		sweeper.sweep(0)
		sweeper.initialize()
		first = corrections.as_array().copy()
		corrections.alpha[:] = -1.0
		sweeper.sweep(0)
		assert np.allclose(corrections.as_array(), first, rtol=1E-12)

	def test_currents_match_plain_tally(self, coupled):
		sweeper, corrections = coupled("vacuum")
		plain = MoCCalculator(sweeper.mesh, sweeper.ang_quad, sweeper.rays, sweeper.xs_mesh,
		                      sweeper.source, sweeper.n_inner)
		plain_data = CoarseData(sweeper.mesh, 1)
		plain.set_coarse_data(plain_data)
		sweeper.sweep(0)
		plain.sweep(0)
		assert np.allclose(sweeper.coarse_data.current, plain_data.current, rtol=1E-12, atol=1E-15)


class TestCoupling:
	"""Associating correction data with a sweeper."""

	def test_size_mismatch(self, make_mesh, absorber_lib, make_sweep_inputs):
		mesh = make_mesh()
		ang_quad, rays, xs_mesh, source = make_sweep_inputs(mesh, absorber_lib, 1.0)
		sweeper = MoCCalculator2D3D(mesh, ang_quad, rays, xs_mesh, source, 1)
		wrong = CorrectionData(mesh.n_cell, 4*ang_quad.ndir_oct, 1)
		with pytest.raises(ValueError, match="sized"):
			sweeper.set_coupling(wrong, XSMeshHomogenized(mesh, xs_mesh))

	def test_requires_homogenized_xs(self, make_mesh, absorber_lib, make_sweep_inputs):
		mesh = make_mesh()
		ang_quad, rays, xs_mesh, source = make_sweep_inputs(mesh, absorber_lib, 1.0)
		sweeper = MoCCalculator2D3D(mesh, ang_quad, rays, xs_mesh, source, 1)
		corrections = CorrectionData(mesh.n_cell, ang_quad.ndir(), 1)
		with pytest.raises(ValueError, match="homogenized"):
			sweeper.set_coupling(corrections, None)

	def test_uncoupled_behaves_as_plain_sweeper(self, make_mesh, absorber_lib, make_sweep_inputs):
		mesh = make_mesh(bc="vacuum")
		ang_quad, rays, xs_mesh, source = make_sweep_inputs(mesh, absorber_lib, 1.0)
		sweeper = MoCCalculator2D3D(mesh, ang_quad, rays, xs_mesh, source, 2)
		plain = MoCCalculator(mesh, ang_quad, rays, xs_mesh, source, 2)
		sweeper.sweep(0)
		plain.sweep(0)
		assert list(sweeper.flux[:, 0]) == list(plain.flux[:, 0])
		assert sweeper.coarse_data is None
