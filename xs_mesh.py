# XS Mesh
#
# Macroscopic cross sections mapped onto the fine and coarse meshes

import logging

import numpy as np

logger = logging.getLogger(__name__)


class XSMesh(object):
	"""Cross sections of every flat-source region

	Parameters:
	-----------
	mesh:           CoreMesh
	material_lib:   MaterialLib

	Attributes:
	-----------
	ng:             int; number of energy groups
	xstr:           array(n_reg, ng); transport xs
	xsab:           array(n_reg, ng); absorption xs
	xsnf:           array(n_reg, ng); nu-fission xs
	xsch:           array(n_reg, ng); fission spectrum
	xssc:           array(n_reg, ng, ng); scattering xs, [reg, g_to, g_from]
	"""
	def __init__(self, mesh, material_lib):
		self.ng = material_lib.groups
		mat_ids = mesh.region_materials()
		unique = sorted(set(mat_ids))
		for mat_id in unique:
			if mat_id not in material_lib:
				errstr = "Material {} is used in the core mesh but is not " \
				         "in the material library.".format(mat_id)
				raise KeyError(errstr)
		lookup = {mat_id: i for i, mat_id in enumerate(unique)}
		index = np.array([lookup[m] for m in mat_ids], dtype=int)
		mats = [material_lib[m] for m in unique]
		self.xstr = np.array([m.sigma_tr for m in mats])[index]
		self.xsab = np.array([m.sigma_a for m in mats])[index]
		self.xsnf = np.array([m.nu_sigma_f for m in mats])[index]
		self.xsch = np.array([m.chi for m in mats])[index]
		self.xssc = np.array([m.scatter_matrix for m in mats])[index]
		self.n_reg = len(index)

	def __len__(self):
		return self.n_reg


class XSMeshHomogenized(object):
	"""Cross sections homogenized onto the coarse mesh.

	Cross sections are volume-weighted on construction. After a flux is
	associated with set_flux(), update() re-homogenizes them with
	flux-volume weighting.

	Parameters:
	-----------
	mesh:           CoreMesh
	xs_mesh:        XSMesh; the fine-mesh cross sections
	"""
	def __init__(self, mesh, xs_mesh):
		self.mesh = mesh
		self.xs_mesh = xs_mesh
		self.ng = xs_mesh.ng
		self.n_cell = mesh.n_cell
		self._flux = None
		self._homogenize(np.ones((mesh.n_reg, self.ng)))

	def __len__(self):
		return self.n_cell

	def set_flux(self, flux):
		"""Associate a fine-mesh flux array, [n_reg, ng], for weighting"""
		if flux.shape != (self.mesh.n_reg, self.ng):
			errstr = "Flux has shape {}; expected {}.".format(
				flux.shape, (self.mesh.n_reg, self.ng))
			raise ValueError(errstr)
		self._flux = flux

	def update(self):
		"""Re-homogenize using the associated flux. Without one, the
		volume-weighted cross sections are kept."""
		if self._flux is None:
			return
		self._homogenize(self._flux)

	def _sum(self, values):
		return np.bincount(self.mesh.coarse_cell_of_reg, weights=values,
		                   minlength=self.n_cell)

	def _homogenize(self, flux):
		vol = self.mesh.vol
		xs = self.xs_mesh
		ng = self.ng
		fv = flux*vol[:, np.newaxis]
		fv_sum = np.array([self._sum(fv[:, g]) for g in range(ng)]).T
		denom = np.where(fv_sum > 0, fv_sum, 1.0)
		self.xstr = np.array([self._sum(xs.xstr[:, g]*fv[:, g]) for g in range(ng)]).T/denom
		self.xsab = np.array([self._sum(xs.xsab[:, g]*fv[:, g]) for g in range(ng)]).T/denom
		self.xsnf = np.array([self._sum(xs.xsnf[:, g]*fv[:, g]) for g in range(ng)]).T/denom
		# The fission spectrum is weighted by the fission source
		fis = (xs.xsnf*flux).sum(axis=1)*vol
		fis_sum = self._sum(fis)
		chi = np.array([self._sum(xs.xsch[:, g]*fis) for g in range(ng)]).T
		self.xsch = np.divide(chi, fis_sum[:, np.newaxis], out=np.zeros_like(chi),
		                      where=fis_sum[:, np.newaxis] > 0)
		self.xssc = np.zeros((self.n_cell, ng, ng))
		for g_to in range(ng):
			for g_from in range(ng):
				self.xssc[:, g_to, g_from] = \
					self._sum(xs.xssc[:, g_to, g_from]*fv[:, g_from])/denom[:, g_from]
