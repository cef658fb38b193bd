# Plane
#
# One geometrically unique axial level of the core

from bisect import bisect_right

import numpy as np


def plane_pins(lattices, nx, ny):
	"""Order the pins of one axial level.

	Pins are ordered assembly by assembly (lexicographically, from the
	south-west corner), and lexicographically within each assembly.

	Parameters:
	-----------
	lattices:       list of Lattices at this level, one per assembly,
					south row first
	nx, ny:         int; number of assemblies along x and y

	Returns:
	--------
	list of (Pin, px, py) tuples, where (px, py) is the position of the
	pin in the core-wide pin grid
	"""
	x_offsets = np.concatenate([[0], np.cumsum([lattices[ix].nx for ix in range(nx)])])
	y_offsets = np.concatenate([[0], np.cumsum([lattices[iy*nx].ny for iy in range(ny)])])
	ordered = []
	for iy in range(ny):
		for ix in range(nx):
			lat = lattices[iy*nx + ix]
			for jy in range(lat.ny):
				for jx in range(lat.nx):
					ordered.append((lat.pin(jx, jy), x_offsets[ix] + jx, y_offsets[iy] + jy))
	return ordered


class Plane(object):
	"""The pin-mesh layout of an axial level.

	A Plane holds only geometry, so every axial level with the same
	sequence of pin meshes shares a single Plane.

	Parameters:
	-----------
	lattices:       list of Lattices at this level, south row first
	nx, ny:         int; number of assemblies along x and y

	Attributes:
	-----------
	mesh_ids:       tuple of ints; pin mesh ID of every pin, in region order
	n_reg:          int; number of flat-source regions in the plane
	first_reg:      array of ints; first plane-local region of each pin
	x_vec, y_vec:   arrays of floats, cm; pin boundaries across the plane
	npin_x, npin_y: int; size of the pin grid
	coarse_cell:    array(n_reg) of ints; plane-local coarse cell of each region
	areas:          array(n_reg) of floats, cm^2; area of each region
	"""
	def __init__(self, lattices, nx, ny):
		ordered = plane_pins(lattices, nx, ny)
		self.pin_meshes = [pin.mesh for pin, px, py in ordered]
		self.mesh_ids = tuple(pm.id for pm in self.pin_meshes)
		self.positions = [(px, py) for pin, px, py in ordered]
		n_regs = [pm.n_reg for pm in self.pin_meshes]
		self.first_reg = np.concatenate([[0], np.cumsum(n_regs)[:-1]]).astype(int)
		self.n_reg = int(sum(n_regs))
		self.n_xsreg = int(sum(pm.n_xsreg for pm in self.pin_meshes))

		hx_vec = np.concatenate([lattices[ix].hx_vec for ix in range(nx)])
		hy_vec = np.concatenate([lattices[iy*nx].hy_vec for iy in range(ny)])
		self.x_vec = np.concatenate([[0.0], np.cumsum(hx_vec)])
		self.y_vec = np.concatenate([[0.0], np.cumsum(hy_vec)])
		self.npin_x = len(hx_vec)
		self.npin_y = len(hy_vec)

		self.pin_grid = np.empty((self.npin_y, self.npin_x), dtype=int)
		for ipin, (px, py) in enumerate(self.positions):
			self.pin_grid[py, px] = ipin
		self.coarse_cell = np.concatenate(
			[np.full(pm.n_reg, py*self.npin_x + px, dtype=int)
			 for pm, (px, py) in zip(self.pin_meshes, self.positions)])
		self.areas = np.concatenate([pm.areas for pm in self.pin_meshes])

	def __repr__(self):
		return "Plane({} pins, {} regions)".format(len(self.pin_meshes), self.n_reg)

	def __len__(self):
		return len(self.pin_meshes)

	@property
	def hx(self):
		return self.x_vec[-1]

	@property
	def hy(self):
		return self.y_vec[-1]

	def pin_at(self, px, py):
		"""Get (pin index, pin mesh) at a position in the pin grid"""
		ipin = self.pin_grid[py, px]
		return ipin, self.pin_meshes[ipin]

	def locate(self, x, y):
		"""Get the (px, py) position of the pin containing a point"""
		px = min(max(bisect_right(self.x_vec, x) - 1, 0), self.npin_x - 1)
		py = min(max(bisect_right(self.y_vec, y) - 1, 0), self.npin_y - 1)
		return px, py

	def pin_center(self, px, py):
		return (0.5*(self.x_vec[px] + self.x_vec[px + 1]),
		        0.5*(self.y_vec[py] + self.y_vec[py + 1]))
