# Lattice
#
# Rectangular arrays of pins

import numpy as np


class Lattice(object):
	"""An nx by ny array of pins

	Pins are stored row by row from the south (bottom) edge, so that
	the pin at (ix, iy) is pins[iy*nx + ix].

	Parameters:
	-----------
	lat_id:         int; unique identifier of the lattice
	nx, ny:         int; number of pins along x and y
	pins:           list of Pins, south row first

	Attributes:
	-----------
	hx_vec:         array(nx) of floats, cm; pitch of each column
	hy_vec:         array(ny) of floats, cm; pitch of each row
	n_reg:          int; total number of flat-source regions
	n_xsreg:        int; total number of cross-section regions
	"""
	def __init__(self, lat_id, nx, ny, pins):
		if nx < 1 or ny < 1:
			errstr = "Lattice {} has invalid dimensions: {} x {}".format(lat_id, nx, ny)
			raise ValueError(errstr)
		pins = list(pins)
		if len(pins) != nx*ny:
			errstr = "Lattice {} should have {} pins, but {} were given.".format(
				lat_id, nx*ny, len(pins))
			raise ValueError(errstr)
		self.id = lat_id
		self.nx = nx
		self.ny = ny
		self.pins = pins
		self.hx_vec = np.array([pins[ix].pitch_x for ix in range(nx)])
		self.hy_vec = np.array([pins[iy*nx].pitch_y for iy in range(ny)])
		for iy in range(ny):
			for ix in range(nx):
				pin = pins[iy*nx + ix]
				if not (np.isclose(pin.pitch_x, self.hx_vec[ix]) and
				        np.isclose(pin.pitch_y, self.hy_vec[iy])):
					errstr = "Pin {} at ({}, {}) in lattice {} does not line up " \
					         "with its row and column.".format(pin.id, ix, iy, lat_id)
					raise ValueError(errstr)
		self.n_reg = sum(pin.n_reg for pin in pins)
		self.n_xsreg = sum(pin.n_xsreg for pin in pins)

	def __repr__(self):
		return "Lattice(id={}, {}x{})".format(self.id, self.nx, self.ny)

	def __iter__(self):
		return iter(self.pins)

	def __len__(self):
		return len(self.pins)

	@property
	def hx(self):
		return self.hx_vec.sum()

	@property
	def hy(self):
		return self.hy_vec.sum()

	def pin(self, ix, iy):
		return self.pins[iy*self.nx + ix]

	def compatible(self, other):
		"""Whether another lattice has the same pin boundaries as this one"""
		return (self.nx == other.nx and self.ny == other.ny and
		        np.allclose(self.hx_vec, other.hx_vec) and
		        np.allclose(self.hy_vec, other.hy_vec))


def parse_lattice(node, pins):
	"""Build a Lattice from a <lattice> XML element

	Pin IDs are listed with the north (top) row first.

	Parameters:
	-----------
	node:           Element; the <lattice> element
	pins:           dict of {id: Pin}
	"""
	try:
		lat_id = int(node.get("id"))
		nx = int(node.get("nx"))
		ny = int(node.get("ny"))
	except (TypeError, ValueError):
		errstr = "Lattice has an invalid or missing id, nx or ny: {}"
		raise ValueError(errstr.format(dict(node.attrib)))
	pin_ids = [int(p) for p in (node.text or "").split()]
	if len(pin_ids) != nx*ny:
		errstr = "Lattice {} should have {} pins, but {} were listed.".format(
			lat_id, nx*ny, len(pin_ids))
		raise ValueError(errstr)
	ordered = []
	for iy in range(ny):
		row = ny - 1 - iy
		for ix in range(nx):
			pin_id = pin_ids[row*nx + ix]
			if pin_id not in pins:
				errstr = "Lattice {} references undefined pin {}.".format(lat_id, pin_id)
				raise KeyError(errstr)
			ordered.append(pins[pin_id])
	return Lattice(lat_id, nx, ny, ordered)
