# Quadrature
#
# Classes and data for 3-D angular quadrature sets with octant symmetry

import logging
from math import pi, sin, cos, acos, asin, atan2, sqrt

import h5py
import numpy as np
from numpy.polynomial.legendre import leggauss

import _level_symmetric
from constants import OCTANT_SIGNS, OCTANT_REFLECTION, surface_to_normal

logger = logging.getLogger(__name__)

# Total weight of all directions in all 8 octants
WEIGHT_SUM = 8.0
_TOLERANCE = 1E-12

# Tabuchi-Yamamoto polar angles (sin(theta)) and weights
YAMAMOTO_SIN = {
	1: [0.798184],
	2: [0.363900, 0.899900],
	3: [0.166648, 0.537707, 0.932954]
}
YAMAMOTO_WEIGHTS = {
	1: [1.0],
	2: [0.212854, 0.787146],
	3: [0.046233, 0.283619, 0.670148]
}

MAPPING_KEYS = ("omega_x", "omega_y", "omega_z", "alpha", "theta", "weight")


class Angle(object):
	"""A single discrete direction

	Parameters:
	-----------
	ox, oy, oz:     floats; direction cosines. Must describe a unit vector.
	weight:         float; quadrature weight
	alpha:          float, radians; azimuthal angle, measured from +x.
					[Default: computed from ox and oy]
	theta:          float, radians; polar angle, measured from +z.
					[Default: computed from oz]
	"""
	def __init__(self, ox, oy, oz, weight, alpha=None, theta=None):
		norm = ox*ox + oy*oy + oz*oz
		if abs(norm - 1.0) > 1E-6:
			errstr = "Direction ({}, {}, {}) is not a unit vector.".format(ox, oy, oz)
			raise ValueError(errstr)
		self.ox = float(ox)
		self.oy = float(oy)
		self.oz = float(oz)
		self.weight = float(weight)
		if alpha is None:
			alpha = atan2(oy, ox) % (2*pi)
		if theta is None:
			theta = acos(max(-1.0, min(1.0, oz)))
		self.alpha = float(alpha)
		self.theta = float(theta)

	@classmethod
	def from_angles(cls, alpha, theta, weight):
		"""Create an Angle from its azimuthal and polar angles"""
		sint = sin(theta)
		return cls(sint*cos(alpha), sint*sin(alpha), cos(theta), weight,
		           alpha, theta)

	def __repr__(self):
		rep = "Angle(ox={:.6f}, oy={:.6f}, oz={:.6f}, weight={:.6f})"
		return rep.format(self.ox, self.oy, self.oz, self.weight)

	def __eq__(self, other):
		if not isinstance(other, Angle):
			return NotImplemented
		mine = (self.ox, self.oy, self.oz, self.alpha, self.theta, self.weight)
		theirs = (other.ox, other.oy, other.oz, other.alpha, other.theta, other.weight)
		return all(abs(a - b) <= _TOLERANCE*max(1.0, abs(a)) for a, b in zip(mine, theirs))

	def __ne__(self, other):
		return not self == other

	@property
	def sin_theta(self):
		return sqrt(max(0.0, 1.0 - self.oz*self.oz))

	def to_octant(self, octant):
		"""Get the image of this first-octant Angle in another octant.

		Parameter:
		----------
		octant:     int; octant number, 1 through 8

		Returns:
		--------
		Angle
		"""
		sx, sy, sz = OCTANT_SIGNS[octant - 1]
		alpha = self.alpha
		if sx < 0 and sy > 0:
			alpha = pi - alpha
		elif sx < 0 and sy < 0:
			alpha = pi + alpha
		elif sx > 0 and sy < 0:
			alpha = 2*pi - alpha
		theta = self.theta if sz > 0 else pi - self.theta
		return Angle(sx*self.ox, sy*self.oy, sz*self.oz, self.weight, alpha, theta)


class AngularQuadrature(object):
	"""Discrete-ordinates quadrature with 8-fold octant symmetry.

	The directions of octant 1 are replicated into all 8 octants by flipping
	the signs of their components. Angles are indexed octant by octant, so
	that angle `iang` is in octant `iang // ndir_oct + 1`.

	Parameter:
	----------
	angles:         list of Angles in the first octant (all components
					positive). Their weights should sum to 1, so that the
					weights of the whole set sum to WEIGHT_SUM.

	Attributes:
	-----------
	ndir_oct:       int; number of directions per octant
	angles:         list of all 8*ndir_oct Angles
	"""
	def __init__(self, angles):
		angles = list(angles)
		if not angles:
			raise ValueError("An angular quadrature needs at least one direction.")
		for ang in angles:
			if min(ang.ox, ang.oy, ang.oz) <= 0.0:
				errstr = "{} is not in the first octant.".format(ang)
				raise ValueError(errstr)
		self.ndir_oct = len(angles)
		self.angles = [None]*(8*self.ndir_oct)
		for iang, ang in enumerate(angles):
			self._place(iang, ang)

	def _place(self, iang, angle):
		for octant in range(1, 9):
			self.angles[(octant - 1)*self.ndir_oct + iang] = angle.to_octant(octant)

	def __str__(self):
		rep = "Angular Quadrature\n"
		rep += "------------------"
		rep += "\n{} directions per octant".format(self.ndir_oct)
		for ang in self.octant(1):
			rep += "\n\t{}".format(ang)
		return rep

	def __len__(self):
		return len(self.angles)

	def __getitem__(self, iang):
		return self.angles[iang]

	def __iter__(self):
		return iter(self.angles)

	def __eq__(self, other):
		if not isinstance(other, AngularQuadrature):
			return NotImplemented
		if self.ndir_oct != other.ndir_oct:
			return False
		return all(a == b for a, b in zip(self.angles, other.angles))

	def __ne__(self, other):
		return not self == other

	def ndir(self):
		return len(self.angles)

	def octant(self, k):
		"""Iterate over the directions of octant k.

		Parameter:
		----------
		k:          int; octant number, 1 through 8. 9 denotes the end
					of the quadrature and yields nothing.
		"""
		if not 1 <= k <= 9:
			errstr = "Invalid octant: {}. Octants are numbered 1 through 8.".format(k)
			raise ValueError(errstr)
		return iter(self.angles[(k - 1)*self.ndir_oct:k*self.ndir_oct])

	def reflect(self, iang, surface):
		"""Get the index of the direction mirrored across the plane of a surface.

		Parameters:
		-----------
		iang:       int; index of the incident direction
		surface:    int; one of the surfaces in constants.SURFACES

		Returns:
		--------
		int; index of the reflected direction, in the same position
		within its octant
		"""
		normal = surface_to_normal(surface)
		octant = iang // self.ndir_oct
		new_octant = OCTANT_REFLECTION[normal][octant]
		return iang + (new_octant - octant)*self.ndir_oct

	def reverse(self, iang, dim=2):
		"""Get the index of the direction pointing the opposite way.

		In 2-D, the reversed direction always has a positive z component,
		since only the upper half space is swept.

		Parameters:
		-----------
		iang:       int; index of the direction
		dim:        int; problem dimension (2 or 3)
					[Default: 2]
		"""
		ndo = self.ndir_oct
		octant = iang // ndo
		if dim == 2:
			new_octant = (octant % 4 + 2) % 4
		elif dim == 3:
			if octant < 4:
				new_octant = 4 + (octant + 2) % 4
			else:
				new_octant = (octant - 4 + 2) % 4
		else:
			errstr = "Cannot reverse angles in {} dimensions.".format(dim)
			raise ValueError(errstr)
		return new_octant*ndo + iang % ndo

	def modify_angle(self, iang, angle):
		"""Replace one first-octant direction, and its images in all octants.

		Parameters:
		-----------
		iang:       int; index of the direction in octant 1
		angle:      Angle; the new first-octant direction
		"""
		if not 0 <= iang < self.ndir_oct:
			errstr = "Only first-octant angles may be modified; got {}.".format(iang)
			raise ValueError(errstr)
		self._place(iang, angle)

	def weight_sum(self):
		return sum(ang.weight for ang in self.angles)

	def to_dict(self):
		"""Get the persisted form of the quadrature.

		Returns:
		--------
		dict of {name: np.array}; see MAPPING_KEYS
		"""
		return {
			"omega_x": np.array([a.ox for a in self.angles]),
			"omega_y": np.array([a.oy for a in self.angles]),
			"omega_z": np.array([a.oz for a in self.angles]),
			"alpha": np.array([a.alpha for a in self.angles]),
			"theta": np.array([a.theta for a in self.angles]),
			"weight": np.array([a.weight for a in self.angles])
		}

	def output(self, sink, path="ang_quad"):
		"""Write the quadrature to an output sink (see output.H5Output)"""
		sink.create_group(path)
		for key, values in self.to_dict().items():
			sink.write("{}/{}".format(path, key), values, [len(values)])

	@classmethod
	def level_symmetric(cls, order):
		"""Equal-weight level-symmetric quadrature of the given order"""
		if order <= 0 or order % 2:
			errstr = "Level-symmetric order must be a positive even number; " \
			         "got {}.".format(order)
			raise ValueError(errstr)
		sdict = _level_symmetric.LevelSymmetricQuadrature().getQuadratureSet(order)
		angles = []
		for mu, eta, xi, w in zip(sdict["mu"], sdict["eta"], sdict["xi"], sdict["weight"]):
			angles.append(Angle(mu, eta, xi, w))
		return cls(angles)

	@classmethod
	def chebyshev_gauss(cls, n_azi, n_pol):
		"""Chebyshev azimuthal by Gauss-Legendre polar product quadrature

		Parameters:
		-----------
		n_azi:      int; number of azimuthal angles per octant
		n_pol:      int; number of polar angles per octant
		"""
		_check_product_orders(n_azi, n_pol)
		mus, wts = leggauss(2*n_pol)
		polar = [(acos(mu), w) for mu, w in zip(mus[n_pol:], wts[n_pol:])]
		return cls(_product(n_azi, polar))

	@classmethod
	def chebyshev_yamamoto(cls, n_azi, n_pol):
		"""Chebyshev azimuthal by Tabuchi-Yamamoto polar product quadrature

		Parameters:
		-----------
		n_azi:      int; number of azimuthal angles per octant
		n_pol:      int; number of polar angles per octant. 1 through 3.
		"""
		_check_product_orders(n_azi, n_pol)
		if n_pol not in YAMAMOTO_SIN:
			errstr = "Tabuchi-Yamamoto polar quadrature is only available " \
			         "for 1 through 3 polar angles; got {}.".format(n_pol)
			raise ValueError(errstr)
		polar = [(asin(s), w) for s, w in zip(YAMAMOTO_SIN[n_pol], YAMAMOTO_WEIGHTS[n_pol])]
		return cls(_product(n_azi, polar))

	@classmethod
	def from_mapping(cls, data):
		"""Rebuild a quadrature from its persisted form.

		Parameter:
		----------
		data:       mapping of {name: sequence} containing every
					name in MAPPING_KEYS, for all 8 octants.

		Returns:
		--------
		AngularQuadrature
		"""
		missing = [key for key in MAPPING_KEYS if key not in data]
		if missing:
			errstr = "Angular quadrature data is missing: {}".format(", ".join(missing))
			raise ValueError(errstr)
		arrays = [np.asarray(data[key], dtype=float).ravel() for key in MAPPING_KEYS]
		sizes = {len(a) for a in arrays}
		if len(sizes) != 1:
			errstr = "Angular quadrature arrays have mismatched lengths: {}".format(
				dict(zip(MAPPING_KEYS, [len(a) for a in arrays])))
			raise ValueError(errstr)
		ndir = sizes.pop()
		if ndir == 0 or ndir % 8:
			errstr = "Number of directions ({}) is not divisible by 8.".format(ndir)
			raise ValueError(errstr)
		ndo = ndir // 8
		ox, oy, oz, alpha, theta, weight = arrays
		angles = [Angle(ox[i], oy[i], oz[i], weight[i], alpha[i], theta[i])
		          for i in range(ndo)]
		quad = cls(angles)
		# The other octants must be the images of the first
		for iang in range(ndo, ndir):
			stored = Angle(ox[iang], oy[iang], oz[iang], weight[iang], alpha[iang], theta[iang])
			if stored != quad[iang]:
				errstr = "Direction {} ({}) is not the octant {} image of " \
				         "direction {} ({}).".format(iang, stored, iang//ndo + 1,
				                                     iang % ndo, angles[iang % ndo])
				raise ValueError(errstr)
		return quad

	@classmethod
	def from_hdf5(cls, source, path="ang_quad"):
		"""Read a quadrature written by output()

		Parameters:
		-----------
		source:     str (file name) or h5py.Group
		path:       str; group within the file holding the data
					[Default: "ang_quad"]
		"""
		if isinstance(source, (str, bytes)):
			with h5py.File(source, "r") as f:
				return cls.from_hdf5(f, path)
		group = source[path] if path in source else source
		data = {key: group[key][()] for key in MAPPING_KEYS if key in group}
		return cls.from_mapping(data)


def _check_product_orders(n_azi, n_pol):
	if n_azi < 1 or n_pol < 1:
		errstr = "Product quadratures require positive azimuthal and polar " \
		         "orders; got {} and {}.".format(n_azi, n_pol)
		raise ValueError(errstr)


def _product(n_azi, polar):
	angles = []
	w_azi = 1.0/n_azi
	for i in range(n_azi):
		alpha = (2*i + 1)*pi/(4*n_azi)
		for theta, w_pol in polar:
			angles.append(Angle.from_angles(alpha, theta, w_azi*w_pol))
	return angles


def parse_quadrature(node):
	"""Build an AngularQuadrature from an <ang_quad> XML element.

	Supported types are "ls" (with "order"), "cg" and "cy" (with
	"azimuthal-order" and "polar-order"), and "file" (with "path").
	"""
	if node is None:
		raise ValueError("No <ang_quad> element was specified.")
	qtype = node.get("type", "").lower()
	if qtype in ("ls", "level-symmetric"):
		order = int(node.get("order", -1))
		quad = AngularQuadrature.level_symmetric(order)
	elif qtype in ("cg", "chebyshev-gaussian", "cy", "chebyshev-yamamoto"):
		n_azi = int(node.get("azimuthal-order", -1))
		n_pol = int(node.get("polar-order", -1))
		if qtype.startswith("cg") or qtype.endswith("gaussian"):
			quad = AngularQuadrature.chebyshev_gauss(n_azi, n_pol)
		else:
			quad = AngularQuadrature.chebyshev_yamamoto(n_azi, n_pol)
	elif qtype == "file":
		quad = AngularQuadrature.from_hdf5(node.get("path"))
	else:
		errstr = "Unrecognized angular quadrature type: '{}'".format(qtype)
		raise ValueError(errstr)
	logger.debug("Built %s quadrature with %d directions per octant",
	             qtype, quad.ndir_oct)
	return quad
