"""Tests for modular ray tracing."""

import xml.etree.ElementTree as ET
from math import atan, sin

import numpy as np
import pytest

from quadrature import AngularQuadrature
from rays import RayData, parse_rays


def tracked_areas(plane_rays, rays, n_reg):
	tracked = np.zeros((len(plane_rays), n_reg))
	for iang, angle_rays in enumerate(plane_rays):
		for ray in angle_rays:
			np.add.at(tracked[iang], ray.seg_reg, ray.seg_len)
		tracked[iang] *= rays.spacing(iang)
	return tracked


class TestModularRays:
	"""Ray layout for each angle of octants 1 and 2."""

	@pytest.fixture
	def traced(self, make_mesh):
		mesh = make_mesh(npin=2, nz=1, sub=(2, 3))
		ang_quad = AngularQuadrature.level_symmetric(4)
		return mesh, ang_quad, RayData(mesh, ang_quad, 0.15)

	def test_angles_are_modular(self, traced):
		mesh, ang_quad, rays = traced
		for iang in range(ang_quad.ndir_oct):
			nx = rays.nx(iang)
			ny = rays.ny(iang)
			alpha = atan(mesh.hy*nx/(mesh.hx*ny))
			assert ang_quad[iang].alpha == pytest.approx(alpha)
			assert rays.spacing(iang) == pytest.approx(mesh.hx/nx*sin(alpha))
		assert ang_quad.weight_sum() == pytest.approx(8.0)

	def test_boundary_indices_are_permutations(self, traced):
		mesh, ang_quad, rays = traced
		for iang, angle_rays in enumerate(rays.plane_rays(0)):
			n = rays.n_rays(iang)
			assert len(angle_rays) == n
			assert sorted(ray.bc[0] for ray in angle_rays) == list(range(n))
			assert sorted(ray.bc[1] for ray in angle_rays) == list(range(n))

	def test_rays_of_octant_two_mirror_octant_one(self, traced):
		mesh, ang_quad, rays = traced
		ndo = ang_quad.ndir_oct
		plane_rays = rays.plane_rays(0)
		for iang in range(ndo):
			assert len(plane_rays[iang]) == len(plane_rays[iang + ndo])
			assert rays.spacing(iang) == rays.spacing(iang + ndo)

	def test_coarse_cells_of_segments(self, traced):
		mesh, ang_quad, rays = traced
		plane = mesh.plane(0)
		for angle_rays in rays.plane_rays(0):
			for ray in angle_rays:
				assert list(ray.seg_cell) == list(plane.coarse_cell[ray.seg_reg])
				assert ray.cm_pos[0] == 0
				assert ray.cm_pos[-1] == ray.nseg
				assert len(ray.cm_surf) == len(ray.cm_data) + 1
				assert sum(crd.nseg for crd in ray.cm_data) == ray.nseg

	def test_surface_crossings_are_on_cell_faces(self, traced):
		mesh, ang_quad, rays = traced
		ray = rays.plane_rays(0)[0][0]
		for k, crd in enumerate(ray.cm_data):
			assert ray.cm_surf[k + 1] == mesh.coarse_surf(crd.cell, crd.fw)
		first = ray.cm_data[0]
		assert ray.cm_surf[0] == mesh.coarse_surf(first.cell, first.bw)


class TestVolumeCorrection:
	"""Scaling of segment lengths to preserve region areas."""

	@pytest.fixture
	def mesh(self, make_mesh):
		return make_mesh(npin=2, nz=1, sub=(3, 2))

	def test_angle_correction_is_exact_per_angle(self, mesh):
		rays = RayData(mesh, AngularQuadrature.level_symmetric(4), 0.2, "angle")
		plane = mesh.plane(0)
		tracked = tracked_areas(rays.plane_rays(0), rays, plane.n_reg)
		for iang in range(len(tracked)):
			assert tracked[iang] == pytest.approx(plane.areas)

	def test_flat_correction_is_exact_on_average(self, mesh):
		ang_quad = AngularQuadrature.level_symmetric(4)
		rays = RayData(mesh, ang_quad, 0.2, "flat")
		plane = mesh.plane(0)
		tracked = tracked_areas(rays.plane_rays(0), rays, plane.n_reg)
		weights = np.array([ang_quad[iang].weight for iang in range(len(tracked))])
		assert weights.dot(tracked)/weights.sum() == pytest.approx(plane.areas)

	def test_uncorrected_is_close(self, mesh):
		rays = RayData(mesh, AngularQuadrature.level_symmetric(4), 0.05, None)
		plane = mesh.plane(0)
		tracked = tracked_areas(rays.plane_rays(0), rays, plane.n_reg)
		assert tracked.sum(axis=1) == pytest.approx(np.full(len(tracked), 4.0), rel=0.05)


class TestRayInput:
	"""Invalid ray settings."""

	def test_bad_spacing(self, make_mesh):
		with pytest.raises(ValueError, match="spacing"):
			RayData(make_mesh(), AngularQuadrature.level_symmetric(2), 0.0)

	def test_bad_volume_correction(self, make_mesh):
		with pytest.raises(ValueError, match="volume correction"):
			RayData(make_mesh(), AngularQuadrature.level_symmetric(2), 0.1, "cubic")

	def test_parse(self, make_mesh):
		mesh = make_mesh()
		node = ET.fromstring('<rays spacing="0.1" volume_correction="none"/>')
		rays = parse_rays(node, mesh, AngularQuadrature.level_symmetric(2))
		assert rays.volume_correction is None
		assert len(rays) == 1
		with pytest.raises(ValueError):
			parse_rays(None, mesh, AngularQuadrature.level_symmetric(2))
