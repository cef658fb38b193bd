# Mesh
#
# Coarse (pin-cell) Cartesian mesh indexing.
# Cells and surfaces are numbered plane by plane, from the bottom up.
#
# Within one plane's block of surfaces:
#   [0, nx*ny):                 bottom (Z-normal) faces, by cell
#   [nx*ny, +(nx+1)*ny):        X-normal faces, iy*(nx + 1) + ix
#   [..., +(ny+1)*nx):          Y-normal faces, ix*(ny + 1) + iy
# The top faces of the topmost plane come after the last plane's block.

import numpy as np
from constants import EAST, NORTH, WEST, SOUTH, TOP, BOTTOM, INVALID, \
	X_NORM, Y_NORM, Z_NORM


class Mesh(object):
	"""Structured Cartesian coarse mesh

	Parameters:
	-----------
	x_vec:          array of floats, cm; boundaries of the cells along x
	y_vec:          array of floats, cm; boundaries of the cells along y
	z_vec:          array of floats, cm; boundaries of the planes along z

	Attributes:
	-----------
	nx, ny, nz:     int; number of cells along each axis
	hx_vec, hy_vec, hz_vec:
					arrays of cell widths along each axis
	n_cell_plane:   int; number of coarse cells in one plane
	n_surf_plane:   int; number of coarse surfaces owned by one plane
	"""
	def __init__(self, x_vec, y_vec, z_vec):
		self.x_vec = np.array(x_vec, dtype=float)
		self.y_vec = np.array(y_vec, dtype=float)
		self.z_vec = np.array(z_vec, dtype=float)
		for name, vec in (("x", self.x_vec), ("y", self.y_vec), ("z", self.z_vec)):
			if len(vec) < 2 or (np.diff(vec) <= 0).any():
				errstr = "Mesh boundaries along {} must be strictly increasing: {}"
				raise ValueError(errstr.format(name, vec))
		self.hx_vec = np.diff(self.x_vec)
		self.hy_vec = np.diff(self.y_vec)
		self.hz_vec = np.diff(self.z_vec)
		self.nx = len(self.hx_vec)
		self.ny = len(self.hy_vec)
		self.nz = len(self.hz_vec)
		self.n_cell_plane = self.nx*self.ny
		self.n_surf_plane = (self.nx + 1)*self.ny + (self.ny + 1)*self.nx + self.nx*self.ny
		self.n_cell = self.n_cell_plane*self.nz
		self.n_surf = self.n_surf_plane*self.nz + self.n_cell_plane
		self._n_zsurf = self.nx*self.ny
		self._n_xsurf = (self.nx + 1)*self.ny

	@property
	def hx(self):
		return self.x_vec[-1] - self.x_vec[0]

	@property
	def hy(self):
		return self.y_vec[-1] - self.y_vec[0]

	def dz(self, plane):
		return self.hz_vec[plane]

	def coarse_cell(self, ix, iy, iz=0):
		return iz*self.n_cell_plane + iy*self.nx + ix

	def coarse_position(self, cell):
		"""Get the (ix, iy, iz) position of a coarse cell"""
		iz, rem = divmod(cell, self.n_cell_plane)
		iy, ix = divmod(rem, self.nx)
		return ix, iy, iz

	def coarse_cell_offset(self, plane):
		return plane*self.n_cell_plane

	def coarse_surf_offset(self, plane):
		return plane*self.n_surf_plane

	def plane_surf_xy_begin(self, plane):
		"""First radial (X- or Y-normal) surface owned by a plane"""
		return plane*self.n_surf_plane + self._n_zsurf

	def plane_surf_end(self, plane):
		return (plane + 1)*self.n_surf_plane

	def coarse_surf(self, cell, surface):
		"""Get the index of one face of a coarse cell.

		Parameters:
		-----------
		cell:       int; coarse cell index
		surface:    int; one of EAST, NORTH, WEST, SOUTH, TOP, BOTTOM

		Returns:
		--------
		int; global coarse surface index
		"""
		ix, iy, iz = self.coarse_position(cell)
		offset = iz*self.n_surf_plane
		if surface == BOTTOM:
			return offset + iy*self.nx + ix
		elif surface == TOP:
			return offset + self.n_surf_plane + iy*self.nx + ix
		elif surface == WEST:
			return offset + self._n_zsurf + iy*(self.nx + 1) + ix
		elif surface == EAST:
			return offset + self._n_zsurf + iy*(self.nx + 1) + ix + 1
		elif surface == SOUTH:
			return offset + self._n_zsurf + self._n_xsurf + ix*(self.ny + 1) + iy
		elif surface == NORTH:
			return offset + self._n_zsurf + self._n_xsurf + ix*(self.ny + 1) + iy + 1
		errstr = "{} is not a valid surface.".format(surface)
		raise ValueError(errstr)

	def _decode_surf(self, surf):
		"""Get (normal, ix, iy, iz) for a surface, where iz is the plane
		whose block owns it and (ix, iy) is the lower cell position."""
		iz, local = divmod(surf, self.n_surf_plane)
		if iz == self.nz:
			# top faces of the topmost plane
			iy, ix = divmod(local, self.nx)
			return Z_NORM, ix, iy, iz
		if local < self._n_zsurf:
			iy, ix = divmod(local, self.nx)
			return Z_NORM, ix, iy, iz
		local -= self._n_zsurf
		if local < self._n_xsurf:
			iy, ix = divmod(local, self.nx + 1)
			return X_NORM, ix, iy, iz
		local -= self._n_xsurf
		ix, iy = divmod(local, self.ny + 1)
		return Y_NORM, ix, iy, iz

	def surface_normal(self, surf):
		return self._decode_surf(surf)[0]

	def coarse_area(self, surf):
		"""Area of a coarse surface, cm^2"""
		normal, ix, iy, iz = self._decode_surf(surf)
		if normal == Z_NORM:
			return self.hx_vec[ix]*self.hy_vec[iy]
		elif normal == X_NORM:
			return self.hy_vec[iy]*self.hz_vec[iz]
		return self.hx_vec[ix]*self.hz_vec[iz]

	def coarse_volume(self, cell):
		ix, iy, iz = self.coarse_position(cell)
		return self.hx_vec[ix]*self.hy_vec[iy]*self.hz_vec[iz]

	def coarse_neighbor(self, cell, surface):
		"""Get the cell on the other side of a face, or INVALID at the boundary"""
		ix, iy, iz = self.coarse_position(cell)
		if surface == EAST:
			ix += 1
		elif surface == WEST:
			ix -= 1
		elif surface == NORTH:
			iy += 1
		elif surface == SOUTH:
			iy -= 1
		elif surface == TOP:
			iz += 1
		elif surface == BOTTOM:
			iz -= 1
		else:
			return INVALID
		if 0 <= ix < self.nx and 0 <= iy < self.ny and 0 <= iz < self.nz:
			return self.coarse_cell(ix, iy, iz)
		return INVALID
