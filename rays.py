# Rays
#
# Modular characteristic rays, traced once per unique plane and angle

import logging
from collections import namedtuple
from math import ceil, sin, cos, atan
from warnings import warn

import numpy as np

import geometry
from geometry import Point2
from quadrature import Angle
from constants import EAST, NORTH, WEST, SOUTH, surface_to_normal

logger = logging.getLogger(__name__)

VOLUME_CORRECTIONS = ("flat", "angle", None)
_MERGE_TOL = 1E-10

# One coarse cell along a ray, in forward order.
#   cell:   plane-local coarse cell index
#   nseg:   number of ray segments within the cell
#   fw:     surface through which the forward ray leaves the cell
#   bw:     surface through which the backward ray leaves the cell
CoarseCrossing = namedtuple("CoarseCrossing", ["cell", "nseg", "fw", "bw"])

_OPPOSITE = {EAST: WEST, WEST: EAST, NORTH: SOUTH, SOUTH: NORTH}


class Ray(object):
	"""A characteristic line across one plane

	Parameters:
	-----------
	p1, p2:         Point2; start and end of the ray, on the plane boundary
	bc:             tuple of (entry index, exit index) into the boundary
					flux arrays of the forward direction
	plane:          Plane; the geometry to trace
	mesh:           Mesh; the coarse mesh, for surface indexing

	Attributes:
	-----------
	seg_len:        array of floats, cm; length of each segment
	seg_reg:        array of ints; plane-local region of each segment
	cm_data:        list of CoarseCrossings, one per coarse cell visited
	cm_cell_fw:     int; first coarse cell, forward
	cm_cell_bw:     int; first coarse cell, backward
	cm_surf_fw:     int; plane-local coarse surface where the ray enters
	cm_surf_bw:     int; plane-local coarse surface where the ray exits
	seg_cell:       array of ints; plane-local coarse cell of each segment
	cm_surf, cm_pos, cm_norm:
					arrays; every coarse surface crossed, in forward order,
					with the number of segments traversed before the
					crossing and the normal of the surface
	"""
	def __init__(self, p1, p2, bc, plane, mesh):
		self.p1 = p1
		self.p2 = p2
		self.bc = bc
		self._trace(plane, mesh)

	def __repr__(self):
		return "Ray(({:.4f}, {:.4f}) -> ({:.4f}, {:.4f}), {} segments)".format(
			self.p1.x, self.p1.y, self.p2.x, self.p2.y, self.nseg)

	def __len__(self):
		return self.nseg

	def _trace(self, plane, mesh):
		p1 = self.p1
		p2 = self.p2
		ts = geometry.cross_lines_x(p1, p2, plane.x_vec[1:-1]) + \
			geometry.cross_lines_y(p1, p2, plane.y_vec[1:-1])
		breaks = [0.0]
		for t in sorted(ts):
			if t - breaks[-1] > _MERGE_TOL:
				breaks.append(t)
		if 1.0 - breaks[-1] > _MERGE_TOL:
			breaks.append(1.0)
		else:
			breaks[-1] = 1.0

		lengths = []
		regions = []
		cells = []
		for t0, t1 in zip(breaks[:-1], breaks[1:]):
			mid = geometry.interpolate(p1, p2, 0.5*(t0 + t1))
			px, py = plane.locate(mid.x, mid.y)
			ipin, pin_mesh = plane.pin_at(px, py)
			cx, cy = plane.pin_center(px, py)
			a = geometry.interpolate(p1, p2, t0)
			b = geometry.interpolate(p1, p2, t1)
			seg_lens, seg_regs = pin_mesh.trace(Point2(a.x - cx, a.y - cy),
			                                    Point2(b.x - cx, b.y - cy),
			                                    plane.first_reg[ipin])
			if not seg_lens:
				continue
			lengths += seg_lens
			regions += seg_regs
			if cells and cells[-1][:2] == (px, py):
				cells[-1][2] += len(seg_lens)
			else:
				cells.append([px, py, len(seg_lens)])

		self.seg_len = np.array(lengths)
		self.seg_reg = np.array(regions, dtype=int)
		self.nseg = len(lengths)

		# Walk the coarse cells, inserting an empty cell wherever the ray
		# passes exactly through a corner
		entry = self._boundary_face(p1, plane)
		self.cm_data = []
		for k, (px, py, nseg) in enumerate(cells):
			if k + 1 < len(cells):
				qx, qy = cells[k + 1][:2]
				dx = qx - px
				dy = qy - py
				assert abs(dx) <= 1 and abs(dy) <= 1 and (dx or dy), \
					"Ray skipped a coarse cell: {} -> {}".format((px, py), (qx, qy))
				xface = EAST if dx > 0 else WEST
				yface = NORTH if dy > 0 else SOUTH
				if dx and dy:
					self.cm_data.append(CoarseCrossing(py*plane.npin_x + px, nseg, xface, entry))
					self.cm_data.append(CoarseCrossing(py*plane.npin_x + qx, 0, yface, _OPPOSITE[xface]))
					entry = _OPPOSITE[yface]
					continue
				exit_face = xface if dx else yface
			else:
				exit_face = self._boundary_face(p2, plane)
			self.cm_data.append(CoarseCrossing(py*plane.npin_x + px, nseg, exit_face, entry))
			entry = _OPPOSITE[exit_face]

		self.seg_cell = np.repeat([crd.cell for crd in self.cm_data],
		                          [crd.nseg for crd in self.cm_data]).astype(int)
		first = self.cm_data[0]
		last = self.cm_data[-1]
		self.cm_cell_fw = first.cell
		self.cm_cell_bw = last.cell
		self.cm_surf_fw = mesh.coarse_surf(first.cell, first.bw)
		self.cm_surf_bw = mesh.coarse_surf(last.cell, last.fw)

		surfs = [self.cm_surf_fw]
		positions = [0]
		norms = [surface_to_normal(first.bw)]
		pos = 0
		for crd in self.cm_data:
			pos += crd.nseg
			surfs.append(mesh.coarse_surf(crd.cell, crd.fw))
			positions.append(pos)
			norms.append(surface_to_normal(crd.fw))
		self.cm_surf = np.array(surfs, dtype=int)
		self.cm_pos = np.array(positions, dtype=int)
		self.cm_norm = np.array(norms, dtype=int)

	@staticmethod
	def _boundary_face(point, plane):
		tol = 1E-9*max(plane.hx, plane.hy)
		if abs(point.x) < tol:
			return WEST
		elif abs(point.x - plane.hx) < tol:
			return EAST
		elif abs(point.y) < tol:
			return SOUTH
		elif abs(point.y - plane.hy) < tol:
			return NORTH
		errstr = "Ray end point {} is not on the plane boundary.".format(point)
		raise ValueError(errstr)


class RayData(object):
	"""Modular rays for every unique plane and every angle in octants 1 and 2

	The azimuthal angles of the quadrature are adjusted so that the rays
	of each angle are cyclic across the domain: every ray leaving a face
	lines up with a ray entering that face in the reflected direction.
	Rays of octants 3 and 4 are the same rays, traversed backward.

	Parameters:
	-----------
	mesh:               CoreMesh; the domain to trace
	ang_quad:           AngularQuadrature; modified in place
	spacing:            float, cm; the desired ray spacing
	volume_correction:  str; "flat" (one factor per region), "angle"
						(one factor per region and angle), or None
						[Default: "flat"]

	Attributes:
	-----------
	rays:               list over unique planes of lists over angles in
						octants 1 and 2 of lists of Rays
	"""
	def __init__(self, mesh, ang_quad, spacing, volume_correction="flat"):
		if spacing is None or spacing <= 0:
			errstr = "Ray spacing must be positive; got {}.".format(spacing)
			raise ValueError(errstr)
		if volume_correction not in VOLUME_CORRECTIONS:
			errstr = "Unknown volume correction '{}'. Use one of: {}".format(
				volume_correction, VOLUME_CORRECTIONS)
			raise ValueError(errstr)
		self.mesh = mesh
		self.ang_quad = ang_quad
		self.ndir_oct = ang_quad.ndir_oct
		self.volume_correction = volume_correction
		ndo = self.ndir_oct
		self._nx = np.empty(ndo, dtype=int)
		self._ny = np.empty(ndo, dtype=int)
		self._spacing = np.empty(ndo)
		hx = mesh.hx
		hy = mesh.hy
		for iang in range(ndo):
			ang = ang_quad[iang]
			nx = int(ceil(hx*sin(ang.alpha)/spacing))
			ny = int(ceil(hy*cos(ang.alpha)/spacing))
			alpha = atan(hy*nx/(hx*ny))
			self._nx[iang] = nx
			self._ny[iang] = ny
			self._spacing[iang] = hx/nx*sin(alpha)
			ang_quad.modify_angle(iang, Angle.from_angles(alpha, ang.theta, ang.weight))

		self.rays = []
		for iplane, plane in enumerate(mesh.planes):
			self.rays.append(self.trace_plane(plane))
			if volume_correction is not None:
				self._correct_volume(plane, self.rays[-1])
		logger.info("Traced %d rays in %d unique planes",
		            sum(self.n_rays(iang) for iang in range(2*ndo))*len(self.rays),
		            len(self.rays))

	def __getitem__(self, iplane):
		return self.rays[iplane]

	def __len__(self):
		return len(self.rays)

	def nx(self, iang):
		"""Number of rays entering through a y-normal face"""
		return int(self._nx[iang % self.ndir_oct])

	def ny(self, iang):
		"""Number of rays entering through an x-normal face"""
		return int(self._ny[iang % self.ndir_oct])

	def n_rays(self, iang):
		return self.nx(iang) + self.ny(iang)

	def spacing(self, iang):
		"""Perpendicular distance between rays, cm"""
		return float(self._spacing[iang % self.ndir_oct])

	def plane_rays(self, iz):
		"""Rays of the unique plane used by an axial level"""
		return self.rays[self.mesh.unique_plane[iz]]

	def trace_plane(self, plane):
		"""Trace the rays of every angle in octants 1 and 2 across a plane

		Boundary indices of the rays are laid out as: [0, ny) on the
		x-normal face, by y position, and [ny, ny + nx) on the
		y-normal face, by x position.

		Returns:
		--------
		list over angles of lists of Rays
		"""
		hx = plane.hx
		hy = plane.hy
		plane_rays = []
		for iang in range(2*self.ndir_oct):
			ang = self.ang_quad[iang]
			nx = self.nx(iang)
			ny = self.ny(iang)
			dx = hx/nx
			dy = hy/ny
			c = cos(ang.alpha)
			s = sin(ang.alpha)
			starts = []
			x0 = 0.0 if c > 0 else hx
			for j in range(ny):
				starts.append((Point2(x0, (j + 0.5)*dy), j))
			for i in range(nx):
				starts.append((Point2((i + 0.5)*dx, 0.0), ny + i))
			angle_rays = []
			for p1, entry in starts:
				tx = ((hx if c > 0 else 0.0) - p1.x)/c
				ty = (hy - p1.y)/s
				if tx < ty:
					p2 = Point2(hx if c > 0 else 0.0, p1.y + tx*s)
					exit_idx = min(int(p2.y/dy), ny - 1)
				else:
					p2 = Point2(p1.x + ty*c, hy)
					exit_idx = ny + min(int(p2.x/dx), nx - 1)
				angle_rays.append(Ray(p1, p2, (entry, exit_idx), plane, self.mesh))
			plane_rays.append(angle_rays)
		return plane_rays

	def _correct_volume(self, plane, plane_rays):
		"""Scale segment lengths so that the traced areas match the true ones"""
		tracked = np.zeros((len(plane_rays), plane.n_reg))
		for iang, angle_rays in enumerate(plane_rays):
			for ray in angle_rays:
				np.add.at(tracked[iang], ray.seg_reg, ray.seg_len)
			tracked[iang] *= self.spacing(iang)

		if self.volume_correction == "flat":
			weights = np.array([self.ang_quad[iang].weight for iang in range(len(plane_rays))])
			average = weights.dot(tracked)/weights.sum()
			tracked = np.tile(average, (len(plane_rays), 1))
		missed = (tracked <= 0.0).any(axis=0)
		if missed.any():
			warn("{} regions were missed by every ray of some angle; reduce the "
			     "ray spacing.".format(missed.sum()))
		factors = np.ones_like(tracked)
		np.divide(plane.areas, tracked, out=factors, where=tracked > 0.0)
		for iang, angle_rays in enumerate(plane_rays):
			for ray in angle_rays:
				ray.seg_len = ray.seg_len*factors[iang][ray.seg_reg]


def parse_rays(node, mesh, ang_quad):
	"""Build RayData from a <rays> XML element"""
	if node is None:
		raise ValueError("No <rays> element was specified.")
	spacing = float(node.get("spacing", -1))
	correction = node.get("volume_correction", "flat").lower()
	if correction == "none":
		correction = None
	return RayData(mesh, ang_quad, spacing, correction)
