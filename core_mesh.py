# Core Mesh
#
# The fully-assembled, indexed spatial domain

import logging

import numpy as np

import mesh
from pin_mesh import parse_pin_mesh
from pincell import parse_pin
from lattice import parse_lattice
from assembly import parse_assembly
from core import parse_core
from plane import Plane, plane_pins

logger = logging.getLogger(__name__)


class CoreMesh(mesh.Mesh):
	"""Reactor core mesh, with one coarse cell per pin

	Flat-source regions are numbered plane by plane from the bottom up.
	Within a plane they follow the pin order of plane.plane_pins().

	Parameter:
	----------
	core:           Core; the geometry to index

	Attributes:
	-----------
	core:           Core
	planes:         list of the geometrically unique Planes
	unique_plane:   list(nz) of ints; index into planes for each axial level
	pins:           list of Pins, in region order
	n_reg:          int; number of flat-source regions in the core
	n_xsreg:        int; number of cross-section regions in the core
	vol:            array(n_reg) of floats, cm^3; region volumes
	area:           array(n_reg) of floats, cm^2; region areas
	coarse_cell_of_reg:
					array(n_reg) of ints; coarse cell containing each region
	"""
	def __init__(self, core):
		x_vec = np.concatenate([[0.0], np.cumsum(core.hx_vec)])
		y_vec = np.concatenate([[0.0], np.cumsum(core.hy_vec)])
		z_vec = np.concatenate([[0.0], np.cumsum(core.hz_vec)])
		super().__init__(x_vec, y_vec, z_vec)
		self.core = core
		self.bc = core.boundary()

		self.planes = []
		self.unique_plane = []
		self.first_unique = []
		self.pins = []
		self._pin_positions = []
		self._first_reg_plane = []
		self._plane_ids = []
		n_reg = 0
		for iz in range(self.nz):
			lattices = core.lattices(iz)
			ordered = plane_pins(lattices, core.nx, core.ny)
			mesh_ids = tuple(pin.mesh_id for pin, px, py in ordered)
			# Reuse any plane with the same sequence of pin meshes
			for iplane, ids in enumerate(self._plane_ids):
				if ids == mesh_ids:
					break
			else:
				iplane = len(self.planes)
				self.planes.append(Plane(lattices, core.nx, core.ny))
				self._plane_ids.append(mesh_ids)
				self.first_unique.append(iz)
			self.unique_plane.append(iplane)
			self._first_reg_plane.append(n_reg)
			n_reg += self.planes[iplane].n_reg
			for pin, px, py in ordered:
				self.pins.append(pin)
				self._pin_positions.append((px, py, iz))
		logger.info("Core mesh has %d axial levels and %d unique planes",
		            self.nz, len(self.planes))

		self.n_reg = n_reg
		self.n_xsreg = sum(pin.n_xsreg for pin in self.pins)
		self.n_pin = len(self.pins)
		self.area = np.concatenate([self.plane(iz).areas for iz in range(self.nz)])
		self.vol = np.concatenate([self.plane(iz).areas*self.hz_vec[iz]
		                           for iz in range(self.nz)])
		self.coarse_cell_of_reg = np.concatenate(
			[self.plane(iz).coarse_cell + self.coarse_cell_offset(iz)
			 for iz in range(self.nz)])

	def __repr__(self):
		return "CoreMesh({}x{}x{} pins, {} regions)".format(self.nx, self.ny, self.nz, self.n_reg)

	def __iter__(self):
		return iter(self.pins)

	def plane(self, iz):
		"""Get the (possibly shared) Plane at an axial level"""
		return self.planes[self.unique_plane[iz]]

	def first_reg_plane(self, iz):
		"""First flat-source region of an axial level"""
		return self._first_reg_plane[iz]

	def pin_position(self, ipin):
		"""Get the (px, py, iz) position of a pin"""
		return self._pin_positions[ipin]

	def index_lex(self, position):
		px, py, iz = position
		return self.coarse_cell(px, py, iz)

	def boundary(self):
		"""Boundary conditions, indexed by EAST, NORTH, WEST, SOUTH, TOP, BOTTOM"""
		return list(self.bc)

	def region_materials(self):
		"""Material ID of every flat-source region"""
		return np.concatenate([pin.region_materials() for pin in self.pins])

	@classmethod
	def from_xml(cls, root):
		"""Build a CoreMesh from the geometry elements of an input document

		Parameter:
		----------
		root:       Element; holding <mesh>, <pin>, <lattice>,
					<assembly> and <core> children
		"""
		pin_meshes = _parse_all(root, "mesh", parse_pin_mesh)
		pins = _parse_all(root, "pin", parse_pin, pin_meshes)
		lattices = _parse_all(root, "lattice", parse_lattice, pins)
		assemblies = _parse_all(root, "assembly", parse_assembly, lattices)
		core = parse_core(root.find("core"), assemblies)
		return cls(core)


def _parse_all(root, tag, parser, *args):
	items = {}
	for node in root.findall(tag):
		item = parser(node, *args)
		if item.id in items:
			errstr = "Duplicate {} id: {}".format(tag, item.id)
			raise ValueError(errstr)
		items[item.id] = item
	return items
