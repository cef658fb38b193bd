# Correction Worker
#
# Sweep observer that derives the 2D/3D anisotropic correction factors
# (alpha and beta) for a coarse-mesh transport operator.
#
# The sums are normalized by the number of ray crossings (surfaces) and by
# the traced length (cells), not by the ray spacing.

import numpy as np

from current_worker import Current, CurrentBuffer
from constants import EAST, NORTH, WEST, SOUTH, TOP, X_NORM, Y_NORM

FW, BW = 0, 1


class CorrectionData(object):
	"""Correction factors for every coarse cell, direction and group

	Parameters:
	-----------
	n_cell:         int; number of coarse cells
	n_ang:          int; number of directions in the angular quadrature
	ng:             int; number of energy groups

	Attributes:
	-----------
	alpha:          array(n_cell, n_ang, ng, 2); area corrections for the
					X and Y normals
	beta:           array(n_cell, n_ang, ng); cross-section corrections
	"""
	def __init__(self, n_cell, n_ang, ng):
		self.n_cell = n_cell
		self.n_ang = n_ang
		self.ng = ng
		self.alpha = np.zeros((n_cell, n_ang, ng, 2))
		self.beta = np.zeros((n_cell, n_ang, ng))

	def as_array(self):
		"""All factors in one array, [cell, direction, group, (alpha_x, alpha_y, beta)]"""
		return np.concatenate([self.alpha, self.beta[..., np.newaxis]], axis=-1)

	def output(self, sink):
		dims = [self.n_cell, self.n_ang, self.ng]
		sink.write("corrections/alpha_x", self.alpha[..., X_NORM], dims)
		sink.write("corrections/alpha_y", self.alpha[..., Y_NORM], dims)
		sink.write("corrections/beta", self.beta, dims)


class CorrectionBuffer(CurrentBuffer):
	"""Per-thread accumulators of the correction worker for one plane"""
	def __init__(self, n_surf, n_cell):
		super().__init__(n_surf)
		self.surf_sum = np.zeros((n_surf, 2))
		self.surf_count = np.zeros((n_surf, 2))
		self.vol_sum = np.zeros((n_cell, 2))
		self.sigt_sum = np.zeros((n_cell, 2))
		self.len_sum = np.zeros(n_cell)


class CurrentCorrections(Current):
	"""Current worker that also computes correction factors

	For each angle of octants 1 and 2 and its reverse, the worker
	accumulates, per coarse cell, the average angular flux on every
	surface, the track-length-weighted angular flux in the volume, and
	the same weighted by the transport cross section. After the angle:

		alpha_x = psi_vol / (psi_west + psi_east)
		alpha_y = psi_vol / (psi_south + psi_north)
		beta    = (sum of xstr*psi over the cell / sum of psi) / xstr_coarse

	The factors of each upper-hemisphere direction are also stored for
	its mirror image in the lower hemisphere.

	Parameters:
	-----------
	coarse_data:    CoarseData; receives the currents
	mesh:           CoreMesh
	corrections:    CorrectionData; receives the factors
	qbar:           array(n_reg); source divided by transport xs, per steradian.
					Read during the sweep, so it must be the sweeper's array.
	xstr:           array(n_reg); transport xs of the group being swept
	ang_quad:       AngularQuadrature
	sn_xs_mesh:     XSMeshHomogenized; coarse-cell cross sections
	"""
	def __init__(self, coarse_data, mesh, corrections, qbar, xstr, ang_quad, sn_xs_mesh):
		super().__init__(coarse_data, mesh)
		self.corrections = corrections
		self.qbar = qbar
		self.xstr = xstr
		self.ang_quad = ang_quad
		self.sn_xs_mesh = sn_xs_mesh
		self.n_cell_plane = mesh.n_cell_plane
		cells = range(self.n_cell_plane)
		self.faces = {face: np.array([mesh.coarse_surf(ic, face) for ic in cells], dtype=int)
		              for face in (EAST, NORTH, WEST, SOUTH)}
		self.rsin_theta = 1.0
		self._sums = self.new_buffer()

	def set_angle(self, angle, spacing):
		super().set_angle(angle, spacing)
		self.rsin_theta = 1.0/angle.sin_theta

	def new_buffer(self):
		return CorrectionBuffer(self.n_surf_plane, self.n_cell_plane)

	def post_ray(self, psi1, psi2, e_tau, ray, first_reg, buffer):
		super().post_ray(psi1, psi2, e_tau, ray, first_reg, buffer)
		surfs = ray.cm_surf
		np.add.at(buffer.surf_sum[:, FW], surfs, psi1[ray.cm_pos])
		np.add.at(buffer.surf_sum[:, BW], surfs, psi2[ray.cm_pos])
		np.add.at(buffer.surf_count, surfs, 1.0)

		regs = ray.seg_reg + first_reg
		xstr = self.xstr[regs]
		qbar = self.qbar[regs]
		tau = xstr*ray.seg_len*self.rsin_theta
		# Segment-average angular flux
		psibar = np.empty((ray.nseg, 2))
		has_tau = tau > 0.0
		safe_tau = np.where(has_tau, tau, 1.0)
		psibar[:, FW] = np.where(has_tau, qbar + (psi1[:-1] - psi1[1:])/safe_tau, psi1[:-1])
		psibar[:, BW] = np.where(has_tau, qbar + (psi2[1:] - psi2[:-1])/safe_tau, psi2[1:])
		weighted = psibar*ray.seg_len[:, np.newaxis]
		np.add.at(buffer.vol_sum, ray.seg_cell, weighted)
		np.add.at(buffer.sigt_sum, ray.seg_cell, weighted*xstr[:, np.newaxis])
		np.add.at(buffer.len_sum, ray.seg_cell, ray.seg_len)

	def reduce(self, buffers):
		super().reduce(buffers)
		sums = self._sums
		for buffer in buffers:
			sums.surf_sum += buffer.surf_sum
			sums.surf_count += buffer.surf_count
			sums.vol_sum += buffer.vol_sum
			sums.sigt_sum += buffer.sigt_sum
			sums.len_sum += buffer.len_sum

	def post_angle(self, iang):
		sums = self._sums
		self.surf_psi = np.divide(sums.surf_sum, sums.surf_count,
		                          out=np.zeros_like(sums.surf_sum),
		                          where=sums.surf_count > 0)
		len_sum = np.repeat(sums.len_sum[:, np.newaxis], 2, axis=1)
		self.vol_psi = np.divide(sums.vol_sum, len_sum, out=np.zeros_like(sums.vol_sum),
		                         where=len_sum > 0)
		self.sigt_eff = np.divide(sums.sigt_sum, sums.vol_sum,
		                          out=np.zeros_like(sums.sigt_sum),
		                          where=sums.vol_sum != 0)
		self.calculate_corrections(iang, self.group)
		self._sums = self.new_buffer()

	def calculate_corrections(self, iang, group):
		"""Store alpha and beta for an angle of octants 1-2 and its reverse"""
		iang1 = iang
		iang2 = self.ang_quad.reverse(iang)
		ox = self.ang_quad[iang].ox
		# All swept angles are positive in y
		surfs = {
			FW: {"yl": SOUTH, "yr": NORTH},
			BW: {"yl": NORTH, "yr": SOUTH}
		}
		if ox > 0.0:
			surfs[FW].update(xl=WEST, xr=EAST)
			surfs[BW].update(xl=EAST, xr=WEST)
		else:
			surfs[FW].update(xl=EAST, xr=WEST)
			surfs[BW].update(xl=WEST, xr=EAST)

		cells = np.arange(self.n_cell_plane) + self.cell_offset
		xstr = self.sn_xs_mesh.xstr[cells, group]
		for direction, ang in ((FW, iang1), (BW, iang2)):
			faces = surfs[direction]
			psi = self.surf_psi[:, direction]
			vol = self.vol_psi[:, direction]
			ax = _safe_ratio(vol, psi[self.faces[faces["xl"]]] + psi[self.faces[faces["xr"]]])
			ay = _safe_ratio(vol, psi[self.faces[faces["yl"]]] + psi[self.faces[faces["yr"]]])
			b = _safe_ratio(self.sigt_eff[:, direction], xstr)
			for iang_out in (ang, self.ang_quad.reflect(ang, TOP)):
				self.corrections.alpha[cells, iang_out, group, X_NORM] = ax
				self.corrections.alpha[cells, iang_out, group, Y_NORM] = ay
				self.corrections.beta[cells, iang_out, group] = b


def _safe_ratio(num, denom):
	return np.divide(num, denom, out=np.zeros_like(num), where=denom != 0)
