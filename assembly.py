# Assembly
#
# Axial stacks of lattices

import numpy as np


class Assembly(object):
	"""A stack of compatible lattices, listed from the bottom up

	Parameters:
	-----------
	asy_id:         int; unique identifier of the assembly
	lattices:       list of Lattices, bottom first
	hz:             float, or list of floats, cm; the height of every
					plane, or of each plane from the bottom up

	Attributes:
	-----------
	nz:             int; number of planes
	hz_vec:         array(nz) of floats, cm; height of each plane
	"""
	def __init__(self, asy_id, lattices, hz):
		lattices = list(lattices)
		if not lattices:
			errstr = "Assembly {} has no lattices.".format(asy_id)
			raise ValueError(errstr)
		nz = len(lattices)
		if np.isscalar(hz):
			hz_vec = np.full(nz, float(hz))
		else:
			hz_vec = np.array(hz, dtype=float)
			if len(hz_vec) != nz:
				errstr = "Assembly {} has {} lattices but {} plane heights.".format(
					asy_id, nz, len(hz_vec))
				raise ValueError(errstr)
		if (hz_vec <= 0).any():
			errstr = "Assembly {} has non-positive plane heights: {}".format(asy_id, hz_vec)
			raise ValueError(errstr)
		for iz, lat in enumerate(lattices[1:], start=1):
			if not lat.compatible(lattices[0]):
				errstr = "Lattice {} at plane {} of assembly {} is not compatible " \
				         "with lattice {} below it.".format(lat.id, iz, asy_id, lattices[0].id)
				raise ValueError(errstr)
		self.id = asy_id
		self.lattices = lattices
		self.hz_vec = hz_vec
		self.nz = nz

	def __repr__(self):
		return "Assembly(id={}, nz={})".format(self.id, self.nz)

	def __getitem__(self, iz):
		return self.lattices[iz]

	def __iter__(self):
		return iter(self.lattices)

	def __len__(self):
		return self.nz

	@property
	def hx_vec(self):
		return self.lattices[0].hx_vec

	@property
	def hy_vec(self):
		return self.lattices[0].hy_vec

	@property
	def hx(self):
		return self.lattices[0].hx

	@property
	def hy(self):
		return self.lattices[0].hy

	@property
	def n_reg(self):
		return sum(lat.n_reg for lat in self.lattices)

	@property
	def n_xsreg(self):
		return sum(lat.n_xsreg for lat in self.lattices)


def parse_assembly(node, lattices):
	"""Build an Assembly from an <assembly> XML element

	Plane heights are given either by the "hz" attribute (all planes
	equal) or by an <hz> child listing them from the bottom up.

	Parameters:
	-----------
	node:           Element; the <assembly> element
	lattices:       dict of {id: Lattice}
	"""
	try:
		asy_id = int(node.get("id"))
	except (TypeError, ValueError):
		errstr = "Assembly has an invalid or missing id: {}".format(node.get("id"))
		raise ValueError(errstr)
	lat_text = node.findtext("lattices")
	if lat_text is None:
		errstr = "Assembly {} has no <lattices> list.".format(asy_id)
		raise ValueError(errstr)
	lat_ids = [int(l) for l in lat_text.split()]
	np_attr = node.get("np")
	if np_attr is not None and int(np_attr) != len(lat_ids):
		errstr = "Assembly {} should have {} planes, but {} lattices were " \
		         "listed.".format(asy_id, np_attr, len(lat_ids))
		raise ValueError(errstr)

	hz_attr = node.get("hz")
	hz_node = node.find("hz")
	if hz_attr is not None and hz_node is not None:
		errstr = "Assembly {} over-specifies its plane heights; use either " \
		         "the hz attribute or an <hz> list.".format(asy_id)
		raise ValueError(errstr)
	elif hz_attr is not None:
		hz = float(hz_attr)
	elif hz_node is not None:
		hz = [float(h) for h in (hz_node.text or "").split()]
	else:
		errstr = "Assembly {} does not specify its plane heights.".format(asy_id)
		raise ValueError(errstr)

	stack = []
	for lat_id in lat_ids:
		if lat_id not in lattices:
			errstr = "Assembly {} references undefined lattice {}.".format(asy_id, lat_id)
			raise KeyError(errstr)
		stack.append(lattices[lat_id])
	return Assembly(asy_id, stack, hz)
