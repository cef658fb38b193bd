"""Tests for building and running a whole problem from XML."""

import logging
import xml.etree.ElementTree as ET

import h5py
import numpy as np
import pytest

from calculator import MoCCalculator, MoCCalculator2D3D
from output import H5Output, RunContext
from problem import Problem, main

from conftest import CORE_XML


class TestBuild:
	"""Assembling the components of a run."""

	def test_2d3d_sweeper(self, core_xml):
		problem = Problem(core_xml)
		assert isinstance(problem.sweeper, MoCCalculator2D3D)
		assert problem.sweeper.corrections is problem.corrections
		assert problem.sweeper.coarse_data is problem.coarse_data
		assert problem.corrections.alpha.shape == \
			(problem.mesh.n_cell, problem.ang_quad.ndir(), 2, 2)
		assert problem.sweeper.n_inner == 2

	def test_moc_sweeper(self, core_xml):
		core_xml.find("sweeper").set("type", "MoC")
		problem = Problem(core_xml)
		assert type(problem.sweeper) is MoCCalculator
		assert problem.corrections is None
		assert problem.sweeper.coarse_data is problem.coarse_data

	def test_unknown_sweeper(self, core_xml):
		core_xml.find("sweeper").set("type", "sn")
		with pytest.raises(ValueError, match="Unknown sweeper"):
			Problem(core_xml)

	def test_missing_sweeper(self, core_xml):
		core_xml.remove(core_xml.find("sweeper"))
		with pytest.raises(ValueError, match="sweeper"):
			Problem(core_xml)

	def test_bad_inner_iterations(self, core_xml):
		core_xml.find("sweeper").set("n_inner", "two")
		with pytest.raises(ValueError, match="n_inner"):
			Problem(core_xml)

	def test_from_file(self, tmp_path):
		filename = tmp_path/"core.xml"
		filename.write_text(CORE_XML)
		problem = Problem.from_file(str(filename))
		assert problem.mesh.nz == 3


class TestRun:
	"""Sweeping and writing results."""

	def test_run_and_output(self, core_xml, tmp_path):
		problem = Problem(core_xml)
		flux = problem.run(1)
		assert flux.shape == (problem.mesh.n_reg, 2)
		assert np.isfinite(flux).all()
		assert (flux > 0).all()
		assert problem.coarse_data.has_radial_data
		assert np.isfinite(problem.corrections.as_array()).all()
		filename = str(tmp_path/"out.h5")
		with H5Output(filename) as sink:
			problem.output(sink)
		with h5py.File(filename, "r") as f:
			assert f["ng"][()] == 2
			assert f["flux/001"].shape == (3, 2, 2)
			assert f["flux/002"].shape == (3, 2, 2)
			assert f["ang_quad/weight"].shape == (len(problem.ang_quad),)
			assert f["corrections/beta"].shape == (problem.mesh.n_cell, problem.ang_quad.ndir(), 2)

	def test_output_without_sink_warns(self, core_xml, caplog):
		problem = Problem(core_xml, RunContext(log=logging.getLogger("test_problem")))
		with caplog.at_level(logging.WARNING, logger="test_problem"):
			problem.output()
		assert "No output sink" in caplog.text

	def test_main(self, tmp_path):
		infile = tmp_path/"core.xml"
		infile.write_text(CORE_XML)
		outfile = tmp_path/"out.h5"
		main([str(infile), "-o", str(outfile), "-n", "1"])
		with h5py.File(str(outfile), "r") as f:
			assert "flux/002" in f
			assert "corrections/alpha_x" in f
