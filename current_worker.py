# Current Worker
#
# Observers of the MoC sweep. NoCurrent does nothing; Current tallies
# coarse-mesh currents and surface fluxes from the angular flux on each ray.
#
# Rays of one angle may be swept by several threads at once. Each thread
# accumulates into its own buffer (new_buffer()); the sweeper hands all the
# buffers of an angle to reduce(), in a fixed order, once they are complete.

from math import pi, sin, cos

import numpy as np
from constants import X_NORM, Y_NORM


class NoCurrent(object):
	"""Sweep observer that does no extra work"""
	observes_rays = False

	def __init__(self, coarse_data=None, mesh=None):
		self.coarse_data = coarse_data
		self.mesh = mesh

	def set_group(self, group):
		pass

	def set_plane(self, plane):
		pass

	def set_angle(self, angle, spacing):
		pass

	def new_buffer(self):
		return None

	def post_ray(self, psi1, psi2, e_tau, ray, first_reg, buffer):
		pass

	def reduce(self, buffers):
		pass

	def post_angle(self, iang):
		pass

	def post_plane(self):
		pass

	def post_sweep(self):
		pass


class CurrentBuffer(object):
	"""Per-thread current accumulators for one plane"""
	def __init__(self, n_surf):
		self.current = np.zeros(n_surf)
		self.surface_flux = np.zeros(n_surf)
		self.partial_current = np.zeros((n_surf, 2))


class Current(NoCurrent):
	"""Sweep observer that tallies coarse-mesh currents

	Currents are positive in the direction of increasing x and y. After
	the sweep, the tallies on the X- and Y-normal surfaces of every plane
	are divided by the surface areas.

	Parameters:
	-----------
	coarse_data:    CoarseData; receives the currents
	mesh:           Mesh; the coarse mesh
	"""
	observes_rays = True

	def __init__(self, coarse_data, mesh):
		super().__init__(coarse_data, mesh)
		self.n_surf_plane = mesh.n_surf_plane
		self.current_weights = np.zeros(2)
		self.flux_weights = np.zeros(2)
		# partial current slot of the forward direction, per normal
		self.fw_slot = np.zeros(2, dtype=int)
		self.group = None
		self.plane = None
		self.cell_offset = 0
		self.surf_offset = 0

	def set_group(self, group):
		self.group = group

	def set_plane(self, plane):
		self.plane = plane
		self.cell_offset = self.mesh.coarse_cell_offset(plane)
		self.surf_offset = self.mesh.coarse_surf_offset(plane)

	def set_angle(self, angle, spacing):
		# Scale the weights to sum to 4*pi, and by dz to get the actual
		# coarse surface area
		w = angle.weight*pi
		dz = self.mesh.dz(self.plane)
		x_spacing = spacing/abs(cos(angle.alpha))
		y_spacing = spacing/abs(sin(angle.alpha))
		self.current_weights[X_NORM] = w*angle.ox*x_spacing*dz
		self.current_weights[Y_NORM] = w*angle.oy*y_spacing*dz
		self.flux_weights[X_NORM] = w*x_spacing*dz
		self.flux_weights[Y_NORM] = w*y_spacing*dz
		self.fw_slot[X_NORM] = 0 if angle.ox > 0 else 1
		self.fw_slot[Y_NORM] = 0 if angle.oy > 0 else 1

	def new_buffer(self):
		return CurrentBuffer(self.n_surf_plane)

	def post_ray(self, psi1, psi2, e_tau, ray, first_reg, buffer):
		surfs = ray.cm_surf
		norms = ray.cm_norm
		psi_fw = psi1[ray.cm_pos]
		psi_bw = psi2[ray.cm_pos]
		cw = self.current_weights[norms]
		fw = self.flux_weights[norms]
		slot = self.fw_slot[norms]
		np.add.at(buffer.current, surfs, (psi_fw - psi_bw)*cw)
		np.add.at(buffer.surface_flux, surfs, (psi_fw + psi_bw)*fw)
		np.add.at(buffer.partial_current, (surfs, slot), psi_fw*abs(cw))
		np.add.at(buffer.partial_current, (surfs, 1 - slot), psi_bw*abs(cw))

	def reduce(self, buffers):
		plane_surfs = slice(self.surf_offset, self.surf_offset + self.n_surf_plane)
		group = self.group
		for buffer in buffers:
			self.coarse_data.current[plane_surfs, group] += buffer.current
			self.coarse_data.surface_flux[plane_surfs, group] += buffer.surface_flux
			self.coarse_data.partial_current[plane_surfs, group] += buffer.partial_current

	def post_sweep(self):
		data = self.coarse_data
		group = self.group
		for plane in range(self.mesh.nz):
			for surf in range(self.mesh.plane_surf_xy_begin(plane),
			                  self.mesh.plane_surf_end(plane)):
				area = self.mesh.coarse_area(surf)
				data.current[surf, group] /= area
				data.surface_flux[surf, group] /= area
				data.partial_current[surf, group] /= area
