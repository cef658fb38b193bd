# Calculator
#
# Method of Characteristics sweepers: classes and methods to calculate fluxes

import logging
from concurrent.futures import ThreadPoolExecutor
from math import pi

import numpy as np
from coarse_data import CoarseData
from current_worker import NoCurrent, Current
from correction_worker import CurrentCorrections
from constants import EAST, NORTH, WEST, SOUTH, FPI

logger = logging.getLogger(__name__)


class MoCCalculator(object):
	"""Multigroup Method of Characteristics sweeper

	Each axial level is swept as an independent 2-D problem, using the
	rays of its unique plane. Only the upper half of the unit sphere is
	swept: every ray of octants 1 and 2 is traversed forward, and backward
	for octants 3 and 4. The scalar flux is stored per flat-source region.

	Parameters:
	-----------
	mesh:           CoreMesh; the domain to sweep
	ang_quad:       AngularQuadrature; must be the one the rays were traced with
	rays:           RayData; modular rays for every unique plane
	xs_mesh:        XSMesh; cross sections of every region
	source:         Source; fixed and scattering sources
	n_inner:        int; number of inner iterations per group sweep
	n_threads:      int; number of threads used to sweep the rays of an angle
					[Default: 1]
	context:        RunContext, if one is desired
					[Default: None]

	Attributes:
	-----------
	flux:           array(n_reg, ng); scalar flux
	boundary:       list over groups, planes and angles (4*ndir_oct) of
					arrays of incoming angular flux, indexed like RayData
	boundary_out:   list over planes and angles of arrays of outgoing
					angular flux from the latest sweep
	coarse_data:    CoarseData to receive the coarse-mesh currents, or None
	"""
	def __init__(self, mesh, ang_quad, rays, xs_mesh, source, n_inner,
	             n_threads=1, context=None):
		if n_inner is None or n_inner < 0:
			errstr = "The number of inner iterations must be non-negative; got {}."
			raise ValueError(errstr.format(n_inner))
		if ang_quad is None:
			raise ValueError("The sweeper requires an angular quadrature.")
		if rays is None:
			raise ValueError("The sweeper requires ray data.")
		if rays.ndir_oct != ang_quad.ndir_oct:
			errstr = "Rays were traced for {} directions per octant, but the " \
			         "quadrature has {}.".format(rays.ndir_oct, ang_quad.ndir_oct)
			raise ValueError(errstr)
		if n_threads < 1:
			errstr = "The number of threads must be positive; got {}."
			raise ValueError(errstr.format(n_threads))
		self.mesh = mesh
		self.ang_quad = ang_quad
		self.rays = rays
		self.xs_mesh = xs_mesh
		self.source = source
		self.n_inner = n_inner
		self.n_threads = n_threads
		self.context = context
		self.log = context.log if context is not None else logger
		self.ng = xs_mesh.ng
		self.n_reg = mesh.n_reg
		self.bc = mesh.boundary()
		self.coarse_data = None

		self.flux = np.ones((self.n_reg, self.ng))
		self.flux_1g = np.zeros(self.n_reg)
		self.xstr = np.zeros(self.n_reg)
		self.qbar = np.zeros(self.n_reg)
		n_ang = 4*ang_quad.ndir_oct
		self.boundary = [[[np.zeros(rays.n_rays(iang)) for iang in range(n_ang)]
		                  for iz in range(mesh.nz)] for g in range(self.ng)]
		self.boundary_out = [[np.zeros(rays.n_rays(iang)) for iang in range(n_ang)]
		                     for iz in range(mesh.nz)]
		self._cell_vol = np.bincount(mesh.coarse_cell_of_reg, weights=mesh.vol,
		                             minlength=mesh.n_cell)
		self.initialize()

	def __str__(self):
		return "{}: {} groups, {} regions, {} inner iterations".format(
			type(self).__name__, self.ng, self.n_reg, self.n_inner)

	def initialize(self):
		"""Set a flat flux and isotropic boundary angular fluxes"""
		self.flux[:] = 1.0
		for group_bcs in self.boundary:
			for plane_bcs in group_bcs:
				for bc in plane_bcs:
					bc[:] = 1.0/FPI

	def set_coarse_data(self, coarse_data):
		"""Tally coarse-mesh currents during the last inner iteration"""
		self.coarse_data = coarse_data

	def sweep(self, group):
		"""Perform n_inner inner iterations on one group.

		The in-scatter, fission and external sources are fixed from the
		flux of the other groups before the first inner iteration.
		"""
		self.xstr[:] = self.xs_mesh.xstr[:, group]
		self.flux_1g[:] = self.flux[:, group]
		self.source.initialize_group(group, self.flux)
		for inner in range(self.n_inner):
			self._update_qbar(group)
			if inner == self.n_inner - 1 and self.coarse_data is not None:
				self.coarse_data.zero_data_radial(group)
				self.sweep1g(group, Current(self.coarse_data, self.mesh))
				self.coarse_data.set_has_radial_data(True)
			else:
				self.sweep1g(group, NoCurrent())
		self.flux[:, group] = self.flux_1g
		self.log.debug("Swept group %d", group)

	def _update_qbar(self, group):
		self.source.self_scatter(group, self.flux_1g, self.qbar)
		self.qbar /= self.xstr

	def sweep1g(self, group, worker):
		"""Sweep every ray of every plane once, and update the flux of one group.

		Parameters:
		-----------
		group:      int; the group being swept
		worker:     NoCurrent or subclass; observer of the angular flux
		"""
		ndo = self.ang_quad.ndir_oct
		t_flux = np.zeros(self.n_reg)
		worker.set_group(group)
		pool = None
		if self.n_threads > 1:
			pool = ThreadPoolExecutor(max_workers=self.n_threads)
		try:
			for iz in range(self.mesh.nz):
				worker.set_plane(iz)
				plane_rays = self.rays.plane_rays(iz)
				first_reg = self.mesh.first_reg_plane(iz)
				for iang in range(2*ndo):
					worker.set_angle(self.ang_quad[iang], self.rays.spacing(iang))
					self._sweep_angle(group, iz, iang, plane_rays[iang], first_reg,
					                  t_flux, worker, pool)
					worker.post_angle(iang)
				worker.post_plane()
		finally:
			if pool is not None:
				pool.shutdown()

		self.flux_1g[:] = t_flux/(self.xstr*self.mesh.area) + self.qbar*FPI
		self.update_boundary(group)
		worker.post_sweep()

	def _sweep_angle(self, group, iz, iang, angle_rays, first_reg, t_flux, worker, pool):
		"""Sweep the rays of one angle, and its reverse, across one plane"""
		if pool is None:
			buffer = worker.new_buffer()
			self._sweep_rays(group, iz, iang, angle_rays, first_reg, t_flux, worker, buffer)
			worker.reduce([buffer])
			return

		def sweep_chunk(chunk):
			chunk_flux = np.zeros(self.n_reg)
			buffer = worker.new_buffer()
			self._sweep_rays(group, iz, iang, chunk, first_reg, chunk_flux, worker, buffer)
			return chunk_flux, buffer

		size = -(-len(angle_rays)//self.n_threads)
		chunks = [angle_rays[i:i + size] for i in range(0, len(angle_rays), size)]
		results = list(pool.map(sweep_chunk, chunks))
		for chunk_flux, buffer in results:
			t_flux += chunk_flux
		worker.reduce([buffer for chunk_flux, buffer in results])

	def _sweep_rays(self, group, iz, iang, angle_rays, first_reg, t_flux, worker, buffer):
		angle = self.ang_quad[iang]
		iang2 = self.ang_quad.reverse(iang)
		rsin_theta = 1.0/angle.sin_theta
		wt = angle.weight*self.rays.spacing(iang)*angle.sin_theta*pi
		bc_fw = self.boundary[group][iz][iang]
		bc_bw = self.boundary[group][iz][iang2]
		out_fw = self.boundary_out[iz][iang]
		out_bw = self.boundary_out[iz][iang2]
		xstr = self.xstr
		qbar = self.qbar
		for ray in angle_rays:
			nseg = ray.nseg
			regs = ray.seg_reg + first_reg
			q = qbar[regs]
			e_tau = 1.0 - np.exp(-xstr[regs]*ray.seg_len*rsin_theta)
			psi1 = np.empty(nseg + 1)
			psi2 = np.empty(nseg + 1)

			# Forward
			psi1[0] = bc_fw[ray.bc[0]]
			for i in range(nseg):
				psi1[i + 1] = psi1[i] - (psi1[i] - q[i])*e_tau[i]
			out_fw[ray.bc[1]] = psi1[nseg]

			# Backward, stored by forward position
			psi2[nseg] = bc_bw[ray.bc[1]]
			for i in reversed(range(nseg)):
				psi2[i] = psi2[i + 1] - (psi2[i + 1] - q[i])*e_tau[i]
			out_bw[ray.bc[0]] = psi2[0]

			psi_diff = (psi1[:-1] - q)*e_tau + (psi2[1:] - q)*e_tau
			np.add.at(t_flux, regs, psi_diff*wt)
			if worker.observes_rays:
				worker.post_ray(psi1, psi2, e_tau, ray, first_reg, buffer)

	def update_boundary(self, group):
		"""Set the incoming angular flux of one group for the next sweep.

		Reflective faces take the outgoing flux of the reflected angle;
		vacuum faces are zeroed.
		"""
		for iz in range(self.mesh.nz):
			boundary = self.boundary[group][iz]
			boundary_out = self.boundary_out[iz]
			for iang in range(4*self.ang_quad.ndir_oct):
				angle = self.ang_quad[iang]
				ny = self.rays.ny(iang)
				x_face = WEST if angle.ox > 0 else EAST
				y_face = SOUTH if angle.oy > 0 else NORTH
				for face, faces in ((x_face, slice(0, ny)), (y_face, slice(ny, None))):
					if self.bc[face] == "reflective":
						iang_refl = self.ang_quad.reflect(iang, face)
						boundary[iang][faces] = boundary_out[iang_refl][faces]
					else:
						boundary[iang][faces] = 0.0

	def get_pin_flux(self, group):
		"""Volume-averaged scalar flux of one group in every coarse cell"""
		flux_vol = np.bincount(self.mesh.coarse_cell_of_reg,
		                       weights=self.flux[:, group]*self.mesh.vol,
		                       minlength=self.mesh.n_cell)
		return flux_vol/self._cell_vol

	def homogenize(self, coarse_data):
		"""Store the coarse-cell fluxes of every group in coarse_data"""
		for g in range(self.ng):
			coarse_data.flux[:, g] = self.get_pin_flux(g)

	def output(self, sink):
		"""Write the pin fluxes to an output sink (see output.H5Output)"""
		sink.write("ng", self.ng)
		dims = [self.mesh.nz, self.mesh.ny, self.mesh.nx]
		sink.create_group("flux")
		for g in range(self.ng):
			sink.write("flux/{:03d}".format(g + 1), self.get_pin_flux(g), dims)


class MoCCalculator2D3D(MoCCalculator):
	"""MoC sweeper that also produces 2D/3D correction factors

	On the last inner iteration of each group sweep, the current tally is
	replaced by CurrentCorrections, which fills the associated
	CorrectionData. Without coupling data it behaves as MoCCalculator.

	Parameters:
	-----------
	(as MoCCalculator), plus:
	corrections:    CorrectionData, if coupling is desired now
					[Default: None]
	sn_xs_mesh:     XSMeshHomogenized; coarse-cell cross sections,
					required with corrections
					[Default: None]
	"""
	def __init__(self, mesh, ang_quad, rays, xs_mesh, source, n_inner,
	             n_threads=1, context=None, corrections=None, sn_xs_mesh=None):
		super().__init__(mesh, ang_quad, rays, xs_mesh, source, n_inner,
		                 n_threads, context)
		self.corrections = None
		self.sn_xs_mesh = None
		if corrections is not None:
			self.set_coupling(corrections, sn_xs_mesh)

	def set_coupling(self, corrections, sn_xs_mesh, coarse_data=None):
		"""Associate the correction factors and coarse cross sections to fill.

		Parameters:
		-----------
		corrections:    CorrectionData; sized for the coarse mesh
		sn_xs_mesh:     XSMeshHomogenized; coarse-cell cross sections
		coarse_data:    CoarseData to receive the currents. If None and no
						CoarseData is already set, a new one is created.
						[Default: None]
		"""
		if sn_xs_mesh is None:
			raise ValueError("Correction factors require homogenized cross sections.")
		expected = (self.mesh.n_cell, self.ang_quad.ndir(), self.ng)
		found = (corrections.n_cell, corrections.n_ang, corrections.ng)
		if found != expected:
			errstr = "CorrectionData is sized {}; expected {}.".format(found, expected)
			raise ValueError(errstr)
		self.corrections = corrections
		self.sn_xs_mesh = sn_xs_mesh
		if coarse_data is not None:
			self.coarse_data = coarse_data
		elif self.coarse_data is None:
			self.coarse_data = CoarseData(self.mesh, self.ng)

	def sweep(self, group):
		if self.corrections is None:
			return super().sweep(group)
		self.xstr[:] = self.xs_mesh.xstr[:, group]
		self.flux_1g[:] = self.flux[:, group]
		self.source.initialize_group(group, self.flux)
		for inner in range(self.n_inner):
			self._update_qbar(group)
			if inner == self.n_inner - 1:
				self.coarse_data.zero_data_radial(group)
				worker = CurrentCorrections(self.coarse_data, self.mesh, self.corrections,
				                            self.qbar, self.xstr, self.ang_quad,
				                            self.sn_xs_mesh)
				self.sweep1g(group, worker)
				self.coarse_data.set_has_radial_data(True)
			else:
				self.sweep1g(group, NoCurrent())
		self.flux[:, group] = self.flux_1g
		self.log.debug("Swept group %d with corrections", group)
