# Pincell
#
# A pin cell: a shared pin mesh plus the materials filling its regions

import numpy as np


class Pin(object):
	"""A pin mesh with a material assigned to each cross-section region

	Parameters:
	-----------
	pin_id:         int; unique identifier of the pin
	pin_mesh:       PinMesh; geometry of the pin. Shared with other pins.
	mat_ids:        list of ints; material ID for each cross-section
					region of the mesh

	Attributes:
	-----------
	n_reg:          int; number of flat-source regions
	n_xsreg:        int; number of cross-section regions
	"""
	def __init__(self, pin_id, pin_mesh, mat_ids):
		mat_ids = [int(m) for m in mat_ids]
		if len(mat_ids) != pin_mesh.n_xsreg:
			errstr = "Pin {} lists {} materials, but mesh {} has {} " \
			         "cross-section regions.".format(pin_id, len(mat_ids),
			                                         pin_mesh.id, pin_mesh.n_xsreg)
			raise ValueError(errstr)
		self.id = pin_id
		self.mesh = pin_mesh
		self.mat_ids = mat_ids

	def __repr__(self):
		return "Pin(id={}, mesh={}, materials={})".format(self.id, self.mesh.id, self.mat_ids)

	@property
	def mesh_id(self):
		return self.mesh.id

	@property
	def n_reg(self):
		return self.mesh.n_reg

	@property
	def n_xsreg(self):
		return self.mesh.n_xsreg

	@property
	def pitch_x(self):
		return self.mesh.pitch_x

	@property
	def pitch_y(self):
		return self.mesh.pitch_y

	def region_materials(self):
		"""Get the material ID of every flat-source region

		Returns:
		--------
		array(n_reg) of ints
		"""
		return np.array(self.mat_ids)[self.mesh.xs_reg]


def parse_pin(node, pin_meshes):
	"""Build a Pin from a <pin> XML element

	Parameters:
	-----------
	node:           Element; the <pin> element
	pin_meshes:     dict of {id: PinMesh}
	"""
	try:
		pin_id = int(node.get("id"))
		mesh_id = int(node.get("mesh"))
	except (TypeError, ValueError):
		errstr = "Pin has an invalid or missing id or mesh: id={}, mesh={}"
		raise ValueError(errstr.format(node.get("id"), node.get("mesh")))
	if mesh_id not in pin_meshes:
		errstr = "Pin {} references undefined pin mesh {}.".format(pin_id, mesh_id)
		raise KeyError(errstr)
	mat_ids = (node.text or "").split()
	return Pin(pin_id, pin_meshes[mesh_id], mat_ids)
