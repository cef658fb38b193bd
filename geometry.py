# Geometry
#
# 2-D points and line intersection helpers used by the ray tracer

from collections import namedtuple
from math import sqrt

EPS = 1E-12

Point2 = namedtuple("Point2", ["x", "y"])


def interpolate(p1, p2, t):
	"""Point at parametric position t along the line from p1 to p2"""
	return Point2(p1.x + t*(p2.x - p1.x), p1.y + t*(p2.y - p1.y))


def distance(p1, p2):
	return sqrt((p2.x - p1.x)**2 + (p2.y - p1.y)**2)


def cross_lines_x(p1, p2, xs):
	"""Parametric positions in (0, 1) where the line p1->p2 crosses x = const lines"""
	dx = p2.x - p1.x
	if abs(dx) < EPS:
		return []
	ts = ((x - p1.x)/dx for x in xs)
	return [t for t in ts if EPS < t < 1 - EPS]


def cross_lines_y(p1, p2, ys):
	"""Parametric positions in (0, 1) where the line p1->p2 crosses y = const lines"""
	dy = p2.y - p1.y
	if abs(dy) < EPS:
		return []
	ts = ((y - p1.y)/dy for y in ys)
	return [t for t in ts if EPS < t < 1 - EPS]


def cross_circle(p1, p2, r):
	"""Parametric positions in (0, 1) where the line p1->p2 crosses a
	circle of radius r centered on the origin"""
	dx = p2.x - p1.x
	dy = p2.y - p1.y
	a = dx*dx + dy*dy
	b = 2*(p1.x*dx + p1.y*dy)
	c = p1.x*p1.x + p1.y*p1.y - r*r
	disc = b*b - 4*a*c
	if a < EPS or disc <= 0.0:
		return []
	root = sqrt(disc)
	ts = ((-b - root)/(2*a), (-b + root)/(2*a))
	return [t for t in ts if EPS < t < 1 - EPS]


def cross_rays_origin(p1, p2, directions):
	"""Parametric positions in (0, 1) where the line p1->p2 crosses
	half-lines leaving the origin along the given (cos, sin) directions"""
	dx = p2.x - p1.x
	dy = p2.y - p1.y
	ts = []
	for ux, uy in directions:
		denom = dx*uy - dy*ux
		if abs(denom) < EPS:
			continue
		t = (p1.y*ux - p1.x*uy)/denom
		if not EPS < t < 1 - EPS:
			continue
		# keep only the half-line in the +u direction
		px = p1.x + t*dx
		py = p1.y + t*dy
		if px*ux + py*uy > 0.0:
			ts.append(t)
	return ts
