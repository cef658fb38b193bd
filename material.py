# Material
#
# Multi-group material classes and the material library

import logging
from warnings import warn

import numpy as np

import constants

logger = logging.getLogger(__name__)


class Nuclide(object):
	"""Microscopic multi-group cross sections of one nuclide

	Parameters:
	-----------
	a:          float; mass number or atomic mass. you choose.
	xs_dict:    dict of {"reaction" : mgxs_list},
					-> mgxs_list: list of cross sections by energy group
	g:          int; number of energy groups
				[Default: 1]
	"""
	def __init__(self, a, xs_dict, g=1):
		self.a = a
		self.g = g
		self.xs_dict = {}
		for reaction, mgxs in xs_dict.items():
			if reaction not in constants.REACTIONS:
				errstr = "Unknown reaction type: {}".format(reaction)
				raise ValueError(errstr)
			if np.isscalar(mgxs) and g == 1:
				mgxs = [mgxs]
			if len(mgxs) != g:
				errstr = "Wrong number of energy groups for {} xs".format(reaction)
				raise ValueError(errstr)
			self.xs_dict[reaction] = np.array(mgxs, dtype=float)


class Material(object):
	"""Macroscopic multi-group cross sections

	Parameters:
	-----------
	macro_xs:       dict of {"reaction", array(macroscopic xs, cm^-1)}.
					Scattering matrices are indexed [g_to, g_from].
	groups:         int; number of energy groups
	name:           str; descriptive name of the material
					[Default: empty string]

	Attributes:
	-----------
	sigma_a:        array(groups); absorption xs
	scatter_matrix: array(groups, groups); scattering xs, [g_to, g_from]
	nu_sigma_f:     array(groups); nu-fission xs
	chi:            array(groups); fission spectrum
	sigma_tr:       array(groups); transport xs
	D:              array(groups); diffusion coefficient
	"""
	def __init__(self, macro_xs, groups, name=""):
		self.groups = groups
		self.name = name
		self.sigma_a, self.scatter_matrix, self.nu_sigma_f, \
			self.chi, self.sigma_tr, self.D = \
			self._group_cross_sections_from_dict(macro_xs)

	def __str__(self):
		return self.name

	def _as_groups(self, reaction, values):
		values = np.atleast_1d(np.array(values, dtype=float))
		if values.shape != (self.groups,):
			errstr = "Material '{}': {} xs should have {} groups, not {}.".format(
				self.name, reaction, self.groups, values.size)
			raise ValueError(errstr)
		return values

	def _group_cross_sections_from_dict(self, macro_xs):
		"""Read cross sections from a dictionary.

		Parameter:
		----------
		macro_xs:           dict of {"reaction" : macro_xs}

		Returns:
		--------
		sigma_a:            array, cm^-1; "absorption" xs
		scatter_matrix:     array, cm^-1; "scatter" xs
		nu_sigma_f:         array, cm^-1; "nu-fission" xs
		chi:                array; fission spectrum
		sigma_tr:           array, cm^-1; transport xs
		D:                  array, cm; diffusion coefficient
		"""
		for reaction in macro_xs:
			if reaction not in constants.REACTIONS:
				errstr = "Material '{}': unknown reaction type: {}".format(self.name, reaction)
				raise ValueError(errstr)
		sigma_a = np.zeros(self.groups)
		scatter_matrix = np.zeros((self.groups, self.groups))
		nu_sigma_f = np.zeros(self.groups)
		chi = np.zeros(self.groups)

		if "absorption" in macro_xs:
			sigma_a = self._as_groups("absorption", macro_xs["absorption"])
		for key in ("nu-scatter", "scatter"):
			if key in macro_xs:
				scatter = np.array(macro_xs[key], dtype=float)
				if scatter.size != self.groups**2:
					errstr = "Material '{}': {} matrix should have {} entries, not {}."
					raise ValueError(errstr.format(self.name, key, self.groups**2, scatter.size))
				scatter_matrix = scatter.reshape((self.groups, self.groups))
				break
		if "nu-fission" in macro_xs:
			nu_sigma_f = self._as_groups("nu-fission", macro_xs["nu-fission"])
		if "chi" in macro_xs:
			chi = self._as_groups("chi", macro_xs["chi"])
		elif nu_sigma_f.any():
			chi[0] = 1.0
		if "transport" in macro_xs:
			sigma_tr = self._as_groups("transport", macro_xs["transport"])
			D = 1.0/(3*sigma_tr)
		elif "D" in macro_xs:
			D = self._as_groups("D", macro_xs["D"])
			sigma_tr = 1.0/(3*D)
		else:
			warn("Material '{}': transport cross section unavailable; "
			     "using total.".format(self.name))
			if "total" in macro_xs:
				sigma_tr = self._as_groups("total", macro_xs["total"])
			else:
				sigma_tr = sigma_a + scatter_matrix.sum(axis=0)
			D = np.divide(1.0, 3*sigma_tr, out=np.full(self.groups, np.inf),
			              where=sigma_tr > 0)
		return sigma_a, scatter_matrix, nu_sigma_f, chi, sigma_tr, D

	@classmethod
	def fromNuclides(cls, nuclides, density, name=""):
		"""Generate a Material object from a list of nuclides.
		Each Nuclide must have microscopic multigroup cross sections.
		Macroscopic multigroup cross sections will be calculated.

		Parameters:
		-----------
		nuclides:       list of Nuclides in the Material
		density:        float, g/cm^3: mass density of the material
		name:           str; descriptive name of the material
						[Default: empty string]

		Returns:
		--------
		Material.
		"""
		G = nuclides[0].g
		micro_xs = {}
		molar_mass = 0.0
		for nuc in nuclides:
			if nuc.g != G:
				errstr = "Nuclide with A={} has the wrong number of energy groups."
				raise ValueError(errstr.format(nuc.a))
			molar_mass += nuc.a
			for reaction, mgxs in nuc.xs_dict.items():
				micro_xs[reaction] = micro_xs.get(reaction, np.zeros(G)) + mgxs

		number_density = density*constants.AVOGADRO/molar_mass*1E-24
		macro_xs = {}
		for reaction, mgxs in micro_xs.items():
			if reaction in ("scatter", "nu-scatter"):
				# Microscopic data are total scattering: put it all in-group
				macro_xs[reaction] = np.diag(mgxs*number_density)
			else:
				macro_xs[reaction] = mgxs*number_density
		return cls(macro_xs, G, name)


class MaterialLib(object):
	"""Collection of the materials of a problem

	Parameters:
	-----------
	groups:         int; number of energy groups
	materials:      dict of {id: Material}
	"""
	def __init__(self, groups, materials):
		for mat_id, mat in materials.items():
			if mat.groups != groups:
				errstr = "Material {} has {} groups; the library has {}.".format(
					mat_id, mat.groups, groups)
				raise ValueError(errstr)
		self.groups = groups
		self.materials = dict(materials)

	def __getitem__(self, mat_id):
		try:
			return self.materials[mat_id]
		except KeyError:
			errstr = "Material {} is not in the material library.".format(mat_id)
			raise KeyError(errstr)

	def __contains__(self, mat_id):
		return mat_id in self.materials

	def __len__(self):
		return len(self.materials)

	def __iter__(self):
		return iter(self.materials)


def parse_material_lib(node):
	"""Build a MaterialLib from a <material_lib> XML element

	Each <material> child holds one element per reaction, named after
	the reaction, listing its values by group.
	"""
	if node is None:
		raise ValueError("No <material_lib> element was specified.")
	try:
		groups = int(node.get("ng"))
	except (TypeError, ValueError):
		errstr = "Material library has an invalid or missing ng: {}".format(node.get("ng"))
		raise ValueError(errstr)
	materials = {}
	for mat_node in node.findall("material"):
		mat_id = int(mat_node.get("id"))
		name = mat_node.get("name", "material {}".format(mat_id))
		macro_xs = {}
		for child in mat_node:
			macro_xs[child.tag] = [float(v) for v in (child.text or "").split()]
		if mat_id in materials:
			errstr = "Duplicate material id: {}".format(mat_id)
			raise ValueError(errstr)
		materials[mat_id] = Material(macro_xs, groups, name)
	logger.debug("Parsed %d materials with %d groups", len(materials), groups)
	return MaterialLib(groups, materials)
