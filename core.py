# Core
#
# The full array of assemblies and its boundary conditions

import numpy as np
from constants import BOUNDARY_CONDITIONS, SURFACES, SURFACE_NAMES


class Core(object):
	"""An nx by ny array of assemblies

	Assemblies are stored row by row from the south edge.

	Parameters:
	-----------
	nx, ny:         int; number of assemblies along x and y
	assemblies:     list of Assemblies, south row first
	boundaries:     dict of {surface name: boundary condition}, with an
					entry for each of constants.SURFACE_NAMES

	Attributes:
	-----------
	bc:             list of str; boundary condition on each domain face,
					indexed by EAST, NORTH, WEST, SOUTH, TOP, BOTTOM
	nz:             int; number of planes
	hz_vec:         array(nz) of plane heights, cm
	"""
	def __init__(self, nx, ny, assemblies, boundaries):
		assemblies = list(assemblies)
		if nx < 1 or ny < 1 or len(assemblies) != nx*ny:
			errstr = "Core of {} x {} assemblies cannot hold {} assemblies.".format(
				nx, ny, len(assemblies))
			raise ValueError(errstr)
		self.bc = []
		for surface in SURFACES:
			name = SURFACE_NAMES[surface]
			bc = boundaries.get(name)
			if bc not in BOUNDARY_CONDITIONS:
				errstr = "Invalid boundary condition on the {} face of the core: " \
				         "{}. Must be one of: {}".format(name, bc, sorted(BOUNDARY_CONDITIONS))
				raise ValueError(errstr)
			self.bc.append(bc)

		first = assemblies[0]
		for asy in assemblies:
			if asy.nz != first.nz or not np.allclose(asy.hz_vec, first.hz_vec):
				errstr = "Assembly {} has a different axial structure than " \
				         "assembly {}.".format(asy.id, first.id)
				raise ValueError(errstr)
		for iy in range(ny):
			for ix in range(nx):
				asy = assemblies[iy*nx + ix]
				if not _same_pitches(asy.hx_vec, assemblies[ix].hx_vec):
					errstr = "Assembly {} does not line up with its column.".format(asy.id)
					raise ValueError(errstr)
				if not _same_pitches(asy.hy_vec, assemblies[iy*nx].hy_vec):
					errstr = "Assembly {} does not line up with its row.".format(asy.id)
					raise ValueError(errstr)
		self.nx = nx
		self.ny = ny
		self.assemblies = assemblies
		self.nz = first.nz
		self.hz_vec = np.array(first.hz_vec)

	def __repr__(self):
		return "Core({}x{}x{})".format(self.nx, self.ny, self.nz)

	def assembly(self, ix, iy):
		return self.assemblies[iy*self.nx + ix]

	def boundary(self):
		return list(self.bc)

	@property
	def hx_vec(self):
		"""Pin pitches along x, across the whole core"""
		return np.concatenate([self.assemblies[ix].hx_vec for ix in range(self.nx)])

	@property
	def hy_vec(self):
		"""Pin pitches along y, across the whole core"""
		return np.concatenate([self.assemblies[iy*self.nx].hy_vec for iy in range(self.ny)])

	def lattices(self, iz):
		"""All lattices at one axial level, south row first"""
		return [asy[iz] for asy in self.assemblies]


def _same_pitches(a, b):
	return len(a) == len(b) and np.allclose(a, b)


def parse_core(node, assemblies):
	"""Build a Core from a <core> XML element

	Assembly IDs are listed with the north row first. The boundary
	conditions are given as attributes named after each face.

	Parameters:
	-----------
	node:           Element; the <core> element
	assemblies:     dict of {id: Assembly}
	"""
	if node is None:
		raise ValueError("No <core> element was specified.")
	try:
		nx = int(node.get("nx"))
		ny = int(node.get("ny"))
	except (TypeError, ValueError):
		errstr = "Core has invalid or missing dimensions: {}".format(dict(node.attrib))
		raise ValueError(errstr)
	asy_ids = [int(a) for a in (node.text or "").split()]
	if len(asy_ids) != nx*ny:
		errstr = "Core should have {} assemblies, but {} were listed.".format(
			nx*ny, len(asy_ids))
		raise ValueError(errstr)
	ordered = []
	for iy in range(ny):
		row = ny - 1 - iy
		for ix in range(nx):
			asy_id = asy_ids[row*nx + ix]
			if asy_id not in assemblies:
				errstr = "Core references undefined assembly {}.".format(asy_id)
				raise KeyError(errstr)
			ordered.append(assemblies[asy_id])
	boundaries = {name: node.get(name) for name in SURFACE_NAMES}
	return Core(nx, ny, ordered, boundaries)
