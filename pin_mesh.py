# Pin Mesh
#
# Subdivisions of a single pin cell into flat-source regions.
# Pin meshes are shared, read-only, by every Pin that uses them.

import logging
from bisect import bisect_right
from math import pi, sqrt, atan2, cos, sin

import numpy as np

import geometry
from geometry import Point2

logger = logging.getLogger(__name__)

VALID_SUB_AZI = (1, 2, 4, 8)


class PinMesh(object):
	"""Base class for pin meshes. Coordinates are local to the pin,
	with the origin at its center.

	Parameters:
	-----------
	mesh_id:        int; unique identifier of the mesh
	pitch_x:        float, cm; width of the pin cell
	pitch_y:        float, cm; height of the pin cell

	Attributes:
	-----------
	n_reg:          int; number of flat-source regions
	n_xsreg:        int; number of cross-section (material) regions
	areas:          array(n_reg) of floats, cm^2; area of each region
	xs_reg:         array(n_reg) of ints; the cross-section region
					containing each flat-source region
	"""
	def __init__(self, mesh_id, pitch_x, pitch_y):
		if pitch_x <= 0 or pitch_y <= 0:
			errstr = "Pin mesh {} has a non-positive pitch: ({}, {})"
			raise ValueError(errstr.format(mesh_id, pitch_x, pitch_y))
		self.id = mesh_id
		self.pitch_x = float(pitch_x)
		self.pitch_y = float(pitch_y)
		self.n_reg = 0
		self.n_xsreg = 0
		self.areas = np.array([])
		self.xs_reg = np.array([], dtype=int)

	def __repr__(self):
		return "{}(id={}, n_reg={})".format(type(self).__name__, self.id, self.n_reg)

	@property
	def area(self):
		return self.pitch_x*self.pitch_y

	def find_reg(self, point):
		"""Find the region containing a point (local coordinates)"""
		raise NotImplementedError

	def _crossings(self, p1, p2):
		"""Parametric positions where the line p1->p2 crosses internal
		region boundaries"""
		raise NotImplementedError

	def trace(self, p1, p2, first_reg=0):
		"""Break the chord p1->p2 into segments confined to single regions.

		Parameters:
		-----------
		p1, p2:         Point2; entry and exit points, in local coordinates.
						Both must lie within the pin.
		first_reg:      int; offset added to every region index
						[Default: 0]

		Returns:
		--------
		lengths:        list of floats, cm; segment lengths
		regions:        list of ints; the region of each segment
		"""
		total = geometry.distance(p1, p2)
		ts = sorted(set([0.0, 1.0] + self._crossings(p1, p2)))
		lengths = []
		regions = []
		for t0, t1 in zip(ts[:-1], ts[1:]):
			length = (t1 - t0)*total
			if length <= geometry.EPS:
				continue
			mid = geometry.interpolate(p1, p2, 0.5*(t0 + t1))
			lengths.append(length)
			regions.append(self.find_reg(mid) + first_reg)
		return lengths, regions


class RectPinMesh(PinMesh):
	"""Pin mesh made of a uniform grid of rectangles.

	Region indices run fastest along x: reg = iy*sub_x + ix.

	Parameters:
	-----------
	mesh_id:        int; unique identifier of the mesh
	pitch_x:        float, cm; width of the pin cell
	pitch_y:        float, cm; height of the pin cell
	sub_x:          int; number of divisions along x
	sub_y:          int; number of divisions along y
	"""
	def __init__(self, mesh_id, pitch_x, pitch_y, sub_x=1, sub_y=1):
		super().__init__(mesh_id, pitch_x, pitch_y)
		if sub_x < 1 or sub_y < 1:
			errstr = "Rectangular pin mesh {} needs at least one division " \
			         "along x and y; got ({}, {}).".format(mesh_id, sub_x, sub_y)
			raise ValueError(errstr)
		self.sub_x = sub_x
		self.sub_y = sub_y
		self.x_lines = np.linspace(-0.5*self.pitch_x, 0.5*self.pitch_x, sub_x + 1)
		self.y_lines = np.linspace(-0.5*self.pitch_y, 0.5*self.pitch_y, sub_y + 1)
		self.n_reg = sub_x*sub_y
		self.n_xsreg = self.n_reg
		self.areas = np.full(self.n_reg, self.area/self.n_reg)
		self.xs_reg = np.arange(self.n_reg)

	def find_reg(self, point):
		ix = min(max(bisect_right(self.x_lines, point.x) - 1, 0), self.sub_x - 1)
		iy = min(max(bisect_right(self.y_lines, point.y) - 1, 0), self.sub_y - 1)
		return iy*self.sub_x + ix

	def _crossings(self, p1, p2):
		return geometry.cross_lines_x(p1, p2, self.x_lines[1:-1]) + \
			geometry.cross_lines_y(p1, p2, self.y_lines[1:-1])


class CylPinMesh(PinMesh):
	"""Pin mesh made of concentric rings, split into azimuthal sectors.

	Each material ring is divided into equal-area sub-rings. The region
	outside the last ring fills the rest of the (square) pin cell.
	Region indices run fastest by sector: reg = ring*sub_azi + sector.

	Parameters:
	-----------
	mesh_id:        int; unique identifier of the mesh
	pitch:          float, cm; width and height of the pin cell
	radii:          list of floats, cm; outer radii of the material rings
	sub_rad:        list of ints; number of sub-rings for each material ring
	sub_azi:        int; number of azimuthal sectors. One of VALID_SUB_AZI.
	"""
	def __init__(self, mesh_id, pitch, radii, sub_rad, sub_azi=1):
		super().__init__(mesh_id, pitch, pitch)
		radii = [float(r) for r in radii]
		if len(radii) != len(sub_rad):
			errstr = "Cylindrical pin mesh {} has {} radii but {} sub-ring counts."
			raise ValueError(errstr.format(mesh_id, len(radii), len(sub_rad)))
		if not radii or radii[0] <= 0 or any(b <= a for a, b in zip(radii, radii[1:])):
			errstr = "Radii of pin mesh {} must be positive and increasing: {}"
			raise ValueError(errstr.format(mesh_id, radii))
		if radii[-1] > 0.5*self.pitch_x:
			errstr = "Outer radius {} of pin mesh {} does not fit in pitch {}."
			raise ValueError(errstr.format(radii[-1], mesh_id, self.pitch_x))
		if any(n < 1 for n in sub_rad):
			errstr = "Pin mesh {} needs at least one sub-ring per ring: {}"
			raise ValueError(errstr.format(mesh_id, sub_rad))
		if sub_azi not in VALID_SUB_AZI:
			errstr = "Pin mesh {}: sub_azi must be one of {}; got {}."
			raise ValueError(errstr.format(mesh_id, VALID_SUB_AZI, sub_azi))
		self.radii = radii
		self.sub_rad = list(sub_rad)
		self.sub_azi = sub_azi

		# Equal-area sub-rings
		self.sub_radii = []
		ring_xsreg = []
		r_in = 0.0
		for ixs, (r_out, nsub) in enumerate(zip(radii, sub_rad)):
			dvol = (r_out**2 - r_in**2)/nsub
			for k in range(1, nsub + 1):
				self.sub_radii.append(sqrt(r_in**2 + k*dvol))
				ring_xsreg.append(ixs)
			r_in = r_out
		self.sub_radii[-1] = radii[-1]
		self.n_rings = len(self.sub_radii) + 1
		ring_xsreg.append(len(radii))
		self.n_xsreg = len(radii) + 1
		self.n_reg = self.n_rings*sub_azi

		ring_areas = []
		r_in = 0.0
		for r_out in self.sub_radii:
			ring_areas.append(pi*(r_out**2 - r_in**2))
			r_in = r_out
		ring_areas.append(self.area - pi*r_in**2)
		self.areas = np.repeat(np.array(ring_areas)/sub_azi, sub_azi)
		self.xs_reg = np.repeat(np.array(ring_xsreg, dtype=int), sub_azi)
		self._sector_width = 2*pi/sub_azi
		self._sector_dirs = []
		if sub_azi > 1:
			self._sector_dirs = [(cos(i*self._sector_width), sin(i*self._sector_width))
			                     for i in range(sub_azi)]

	def find_reg(self, point):
		r = sqrt(point.x**2 + point.y**2)
		ring = bisect_right(self.sub_radii, r)
		if self.sub_azi == 1:
			return ring
		angle = atan2(point.y, point.x) % (2*pi)
		sector = min(int(angle/self._sector_width), self.sub_azi - 1)
		return ring*self.sub_azi + sector

	def _crossings(self, p1, p2):
		ts = []
		for r in self.sub_radii:
			ts += geometry.cross_circle(p1, p2, r)
		ts += geometry.cross_rays_origin(p1, p2, self._sector_dirs)
		return ts


def _floats(text):
	return [float(v) for v in text.split()]


def _ints(text):
	return [int(v) for v in text.split()]


def parse_pin_mesh(node):
	"""Build a PinMesh from a <mesh> XML element"""
	try:
		mesh_id = int(node.get("id"))
	except (TypeError, ValueError):
		errstr = "Pin mesh has an invalid or missing id: {}".format(node.get("id"))
		raise ValueError(errstr)
	mtype = node.get("type", "").lower()
	pitch = float(node.get("pitch", -1))
	if mtype == "rect":
		sub_x = int(node.findtext("sub_x", "1"))
		sub_y = int(node.findtext("sub_y", "1"))
		pin_mesh = RectPinMesh(mesh_id, pitch, pitch, sub_x, sub_y)
	elif mtype == "cyl":
		radii = _floats(node.findtext("radii", ""))
		sub_rad = _ints(node.findtext("sub_radii", ""))
		sub_azi = int(node.findtext("sub_azi", "1"))
		pin_mesh = CylPinMesh(mesh_id, pitch, radii, sub_rad, sub_azi)
	else:
		errstr = "Pin mesh {} has an unrecognized type: '{}'".format(mesh_id, mtype)
		raise ValueError(errstr)
	logger.debug("Parsed %r", pin_mesh)
	return pin_mesh
