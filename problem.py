# Problem specification
#
# Build every component of a run from one XML input, and run a fixed
# number of group sweeps

import argparse
import logging
import xml.etree.ElementTree as ET

from core_mesh import CoreMesh
from material import parse_material_lib
from xs_mesh import XSMesh, XSMeshHomogenized
from source import parse_source
from quadrature import parse_quadrature
from rays import parse_rays
from coarse_data import CoarseData
from correction_worker import CorrectionData
from calculator import MoCCalculator, MoCCalculator2D3D
from output import H5Output, RunContext

SWEEPER_TYPES = ("moc", "2d3d")


class Problem(object):
	"""A fully-built transport problem

	Parameters:
	-----------
	root:           Element; root of the input document
	context:        RunContext, if one is desired
					[Default: None (log only, no output)]

	Attributes:
	-----------
	mesh:           CoreMesh
	material_lib:   MaterialLib
	xs_mesh:        XSMesh
	source:         Source
	ang_quad:       AngularQuadrature
	rays:           RayData
	sweeper:        MoCCalculator or MoCCalculator2D3D
	coarse_data:    CoarseData
	corrections:    CorrectionData, for "2d3d" sweepers; otherwise None
	sn_xs_mesh:     XSMeshHomogenized, for "2d3d" sweepers; otherwise None
	"""
	def __init__(self, root, context=None):
		if context is None:
			context = RunContext()
		self.context = context
		log = context.log

		log.info("Building the core mesh")
		self.mesh = CoreMesh.from_xml(root)
		self.material_lib = parse_material_lib(root.find("material_lib"))
		self.xs_mesh = XSMesh(self.mesh, self.material_lib)
		self.source = parse_source(root.find("source"), self.mesh, self.xs_mesh)

		sweeper_node = root.find("sweeper")
		if sweeper_node is None:
			raise ValueError("No <sweeper> element was specified.")
		stype = sweeper_node.get("type", "moc").lower()
		if stype not in SWEEPER_TYPES:
			errstr = "Unknown sweeper type '{}'. Use one of: {}".format(stype, SWEEPER_TYPES)
			raise ValueError(errstr)
		try:
			n_inner = int(sweeper_node.get("n_inner"))
			n_threads = int(sweeper_node.get("threads", 1))
		except (TypeError, ValueError):
			errstr = "Sweeper has an invalid or missing n_inner or threads: {}"
			raise ValueError(errstr.format(dict(sweeper_node.attrib)))

		self.ang_quad = parse_quadrature(sweeper_node.find("ang_quad"))
		log.info("Tracing rays")
		self.rays = parse_rays(sweeper_node.find("rays"), self.mesh, self.ang_quad)
		self.coarse_data = CoarseData(self.mesh, self.xs_mesh.ng)
		self.corrections = None
		self.sn_xs_mesh = None
		if stype == "2d3d":
			self.sn_xs_mesh = XSMeshHomogenized(self.mesh, self.xs_mesh)
			self.corrections = CorrectionData(self.mesh.n_cell, self.ang_quad.ndir(),
			                                  self.xs_mesh.ng)
			self.sweeper = MoCCalculator2D3D(self.mesh, self.ang_quad, self.rays,
			                                 self.xs_mesh, self.source, n_inner,
			                                 n_threads, context)
			self.sweeper.set_coupling(self.corrections, self.sn_xs_mesh, self.coarse_data)
			self.sn_xs_mesh.set_flux(self.sweeper.flux)
		else:
			self.sweeper = MoCCalculator(self.mesh, self.ang_quad, self.rays,
			                             self.xs_mesh, self.source, n_inner,
			                             n_threads, context)
			self.sweeper.set_coarse_data(self.coarse_data)
		log.info("Built %s", self.sweeper)

	@classmethod
	def from_file(cls, filename, context=None):
		"""Read a Problem from an XML input file"""
		root = ET.parse(filename).getroot()
		return cls(root, context)

	def run(self, n_sweeps=1):
		"""Sweep every group n_sweeps times. There is no convergence check.

		Parameters:
		-----------
		n_sweeps:       int; number of passes over all the groups
						[Default: 1]
		"""
		log = self.context.log
		for i in range(n_sweeps):
			if self.sn_xs_mesh is not None:
				self.sn_xs_mesh.update()
			for g in range(self.xs_mesh.ng):
				self.sweeper.sweep(g)
			self.sweeper.homogenize(self.coarse_data)
			log.info("Completed sweep %d of %d", i + 1, n_sweeps)
		return self.sweeper.flux

	def output(self, sink=None):
		"""Write the results to a sink, or to the context's output"""
		if sink is None:
			sink = self.context.output
		if sink is None:
			self.context.log.warning("No output sink; results were not written.")
			return
		self.ang_quad.output(sink)
		self.sweeper.output(sink)
		if self.corrections is not None:
			self.corrections.output(sink)


def main(argv=None):
	parser = argparse.ArgumentParser(description="Run MoC sweeps on an XML core model.")
	parser.add_argument("input", help="XML input file")
	parser.add_argument("-o", "--output", default=None, help="HDF5 output file")
	parser.add_argument("-n", "--sweeps", type=int, default=1,
	                    help="number of sweeps over all groups")
	parser.add_argument("-v", "--verbose", action="store_true")
	args = parser.parse_args(argv)
	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
	                    format="%(asctime)s %(name)s %(levelname)s: %(message)s")
	sink = H5Output(args.output) if args.output else None
	with RunContext(sink) as context:
		problem = Problem.from_file(args.input, context)
		problem.run(args.sweeps)
		problem.output()


if __name__ == "__main__":
	main()
