# Source
#
# Isotropic multi-group source: external, fission and scattering

import numpy as np
from constants import RFPI


class Source(object):
	"""Isotropic volumetric source of every flat-source region

	Parameters:
	-----------
	xs_mesh:        XSMesh; cross sections of every region
	external:       array(n_reg, ng), n/cm^3-s; fixed external source
					[Default: None (no external source)]
	k:              float; eigenvalue used to scale the fission source.
					None disables fission.
					[Default: None]
	"""
	def __init__(self, xs_mesh, external=None, k=None):
		self.xs_mesh = xs_mesh
		self.n_reg = xs_mesh.n_reg
		self.ng = xs_mesh.ng
		self.external = np.zeros((self.n_reg, self.ng))
		if external is not None:
			self.set_external(external)
		self.k = k
		self.fixed = np.zeros(self.n_reg)
		self.group = None

	def set_external(self, external):
		external = np.array(external, dtype=float)
		if external.shape != (self.n_reg, self.ng):
			errstr = "External source has shape {}; expected {}.".format(
				external.shape, (self.n_reg, self.ng))
			raise ValueError(errstr)
		self.external = external

	def fission(self, flux):
		"""Fission source density in every region, summed over groups"""
		return (self.xs_mesh.xsnf*flux).sum(axis=1)

	def initialize_group(self, group, flux):
		"""Compute the part of the source that stays fixed while one
		group is swept: the external source, in-scatter from the other
		groups, and the fission source.

		Parameters:
		-----------
		group:      int; the group about to be swept
		flux:       array(n_reg, ng); the current multi-group flux
		"""
		xssc = self.xs_mesh.xssc[:, group, :]
		fixed = self.external[:, group] + (xssc*flux).sum(axis=1) - \
			xssc[:, group]*flux[:, group]
		if self.k:
			fixed += self.xs_mesh.xsch[:, group]*self.fission(flux)/self.k
		self.fixed = fixed
		self.group = group

	def self_scatter(self, group, flux_1g, qbar):
		"""Add the within-group scattering to the fixed source.

		Parameters:
		-----------
		group:      int; the group being swept
		flux_1g:    array(n_reg); current estimate of the group flux
		qbar:       array(n_reg); filled with the total source per steradian
		"""
		assert group == self.group, \
			"Source was initialized for group {}, not {}.".format(self.group, group)
		qbar[:] = (self.fixed + self.xs_mesh.xssc[:, group, group]*flux_1g)*RFPI


def parse_source(node, mesh, xs_mesh):
	"""Build a Source from a <source> XML element

	Each <material id=...> child lists the external source, by group,
	in every region filled with that material.
	"""
	source = Source(xs_mesh)
	if node is None:
		return source
	mat_ids = mesh.region_materials()
	external = np.zeros((xs_mesh.n_reg, xs_mesh.ng))
	for mat_node in node.findall("material"):
		mat_id = int(mat_node.get("id"))
		values = [float(v) for v in (mat_node.text or "").split()]
		if len(values) != xs_mesh.ng:
			errstr = "Source for material {} has {} groups; expected {}.".format(
				mat_id, len(values), xs_mesh.ng)
			raise ValueError(errstr)
		external[mat_ids == mat_id] = values
	source.set_external(external)
	return source
