# Constants
#
# Enumerations and physical constants shared by the meshes, quadratures and sweepers

from math import pi
from scipy.constants import Avogadro as AVOGADRO

REACTIONS = {"absorption", "nu-fission", "scatter", "nu-scatter",
             "chi", "transport", "total", "D"}
BOUNDARY_CONDITIONS = {"reflective", "vacuum"}

# Surfaces of a cell or of the whole domain
EAST, NORTH, WEST, SOUTH, TOP, BOTTOM = range(6)
INVALID = -1
SURFACES = (EAST, NORTH, WEST, SOUTH, TOP, BOTTOM)
SURFACE_NAMES = ("east", "north", "west", "south", "top", "bottom")

# Normal axes
X_NORM, Y_NORM, Z_NORM = range(3)

FPI = 4*pi
RFPI = 1.0/FPI

# Octant sign table, octants 1 through 8
OCTANT_SIGNS = ((+1, +1, +1), (-1, +1, +1), (-1, -1, +1), (+1, -1, +1),
                (+1, +1, -1), (-1, +1, -1), (-1, -1, -1), (+1, -1, -1))
# Octant (0-indexed) obtained by mirroring across the plane normal to each axis
OCTANT_REFLECTION = {
	X_NORM: (1, 0, 3, 2, 5, 4, 7, 6),
	Y_NORM: (3, 2, 1, 0, 7, 6, 5, 4),
	Z_NORM: (4, 5, 6, 7, 0, 1, 2, 3)
}


def surface_to_normal(surface):
	"""Get the normal axis of a surface.

	Parameter:
	----------
	surface:        int; one of EAST, NORTH, WEST, SOUTH, TOP, BOTTOM

	Returns:
	--------
	int; one of X_NORM, Y_NORM, Z_NORM
	"""
	if surface in (EAST, WEST):
		return X_NORM
	elif surface in (NORTH, SOUTH):
		return Y_NORM
	elif surface in (TOP, BOTTOM):
		return Z_NORM
	errstr = "{} is not a valid surface.".format(surface)
	raise ValueError(errstr)
