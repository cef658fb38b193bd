# Coarse Data
#
# Coarse-mesh currents and fluxes exchanged with a coarse-mesh solver

import numpy as np


class CoarseData(object):
	"""Currents and fluxes on a coarse mesh

	Parameters:
	-----------
	mesh:           Mesh; the coarse mesh
	ng:             int; number of energy groups

	Attributes:
	-----------
	current:        array(n_surf, ng); net current, in the direction of
					increasing x, y or z
	surface_flux:   array(n_surf, ng); scalar flux on each surface
	partial_current:
					array(n_surf, ng, 2); current in the positive [0]
					and negative [1] directions
	flux:           array(n_cell, ng); cell-averaged scalar flux
	"""
	def __init__(self, mesh, ng):
		self.mesh = mesh
		self.ng = ng
		self.current = np.zeros((mesh.n_surf, ng))
		self.surface_flux = np.zeros((mesh.n_surf, ng))
		self.partial_current = np.zeros((mesh.n_surf, ng, 2))
		self.flux = np.zeros((mesh.n_cell, ng))
		self.has_radial_data = False
		radial = np.zeros(mesh.n_surf, dtype=bool)
		for plane in range(mesh.nz):
			radial[mesh.plane_surf_xy_begin(plane):mesh.plane_surf_end(plane)] = True
		self._radial = radial

	def zero_data_radial(self, group):
		"""Zero the data on the X- and Y-normal surfaces for one group"""
		self.current[self._radial, group] = 0.0
		self.surface_flux[self._radial, group] = 0.0
		self.partial_current[self._radial, group, :] = 0.0

	def set_has_radial_data(self, value):
		self.has_radial_data = value
