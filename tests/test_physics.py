"""Tests for materials, cross-section meshes, sources and the output sink."""

import xml.etree.ElementTree as ET

import h5py
import numpy as np
import pytest

from constants import RFPI
from material import Nuclide, Material, MaterialLib, parse_material_lib
from xs_mesh import XSMesh, XSMeshHomogenized
from source import Source, parse_source
from output import H5Output, RunContext
from quadrature import MAPPING_KEYS
from core_mesh import CoreMesh


@pytest.fixture
def two_group_lib():
	fuel = Material({"transport": [0.5, 1.2], "absorption": [0.01, 0.1],
	                 "nu-fission": [0.005, 0.1], "scatter": [0.47, 0.0, 0.02, 1.1]},
	                2, "fuel")
	water = Material({"transport": [0.6, 1.5], "absorption": [0.001, 0.02],
	                  "scatter": [0.55, 0.0, 0.049, 1.48]}, 2, "water")
	return MaterialLib(2, {1: fuel, 2: water})


class TestMaterial:
	"""Multi-group cross sections."""

	def test_scatter_matrix_layout(self, two_group_lib):
		fuel = two_group_lib[1]
		assert fuel.scatter_matrix[1, 0] == 0.02
		assert fuel.scatter_matrix[0, 1] == 0.0
		assert list(fuel.chi) == [1.0, 0.0]
		assert fuel.D == pytest.approx(1.0/(3*np.array([0.5, 1.2])))

	def test_missing_transport_warns(self):
		with pytest.warns(UserWarning, match="transport"):
			mat = Material({"absorption": [0.2], "scatter": [0.3]}, 1, "bare")
		assert mat.sigma_tr == pytest.approx([0.5])

	def test_wrong_group_count(self):
		with pytest.raises(ValueError, match="groups"):
			Material({"transport": [1.0, 2.0]}, 1)

	def test_unknown_reaction(self):
		with pytest.raises(ValueError, match="unknown reaction"):
			Material({"transport": [1.0], "fusion": [1.0]}, 1)

	def test_from_nuclides(self):
		nuc = Nuclide(1.0, {"absorption": [1.0], "transport": [2.0]})
		mat = Material.fromNuclides([nuc], 1.0, "hydrogenous")
		ratio = mat.sigma_tr[0]/mat.sigma_a[0]
		assert ratio == pytest.approx(2.0)

	def test_library_lookup(self, two_group_lib):
		assert 2 in two_group_lib
		assert len(two_group_lib) == 2
		with pytest.raises(KeyError):
			two_group_lib[3]

	def test_parse(self, core_xml):
		lib = parse_material_lib(core_xml.find("material_lib"))
		assert lib.groups == 2
		assert str(lib[2]) == "moderator"
		assert list(lib[1].nu_sigma_f) == [0.005, 0.1]

	def test_parse_duplicate(self, core_xml):
		node = core_xml.find("material_lib")
		node.append(ET.fromstring('<material id="1"><transport>1 1</transport></material>'))
		with pytest.raises(ValueError, match="Duplicate"):
			parse_material_lib(node)


class TestXSMesh:
	"""Cross sections on the fine and coarse meshes."""

	def test_region_lookup(self, core_xml, two_group_lib):
		mesh = CoreMesh.from_xml(core_xml)
		xs_mesh = XSMesh(mesh, two_group_lib)
		mats = mesh.region_materials()
		assert (xs_mesh.xstr[mats == 1] == [0.5, 1.2]).all()
		assert (xs_mesh.xstr[mats == 2] == [0.6, 1.5]).all()
		assert xs_mesh.xssc.shape == (mesh.n_reg, 2, 2)

	def test_missing_material(self, make_mesh, two_group_lib):
		lib = MaterialLib(2, {2: two_group_lib[2]})
		with pytest.raises(KeyError):
			XSMesh(make_mesh(), lib)

	def test_volume_weighting(self, core_xml, two_group_lib):
		mesh = CoreMesh.from_xml(core_xml)
		xs_mesh = XSMesh(mesh, two_group_lib)
		sn_xs = XSMeshHomogenized(mesh, xs_mesh)
		for cell in range(mesh.n_cell):
			in_cell = mesh.coarse_cell_of_reg == cell
			vol = mesh.vol[in_cell]
			expected = (xs_mesh.xstr[in_cell, 0]*vol).sum()/vol.sum()
			assert sn_xs.xstr[cell, 0] == pytest.approx(expected)

	def test_flux_weighting(self, make_mesh, two_group_lib):
		mesh = make_mesh(npin=1, nz=1, sub=(2, 1))
		xs_mesh = XSMesh(mesh, two_group_lib)
		xs_mesh.xstr[1] = [1.5, 3.0]
		sn_xs = XSMeshHomogenized(mesh, xs_mesh)
		assert sn_xs.xstr[0, 0] == pytest.approx(1.0)
		flux = np.array([[3.0, 1.0], [1.0, 1.0]])
		sn_xs.set_flux(flux)
		sn_xs.update()
		assert sn_xs.xstr[0, 0] == pytest.approx((0.5*3.0 + 1.5*1.0)/4.0)
		with pytest.raises(ValueError):
			sn_xs.set_flux(np.ones((3, 2)))


class TestSource:
	"""External, in-scatter and self-scatter sources."""

	@pytest.fixture
	def xs_mesh(self, make_mesh, two_group_lib):
		return XSMesh(make_mesh(npin=1, nz=1), two_group_lib)

	def test_in_scatter(self, xs_mesh):
		source = Source(xs_mesh, np.full((xs_mesh.n_reg, 2), [1.0, 0.0]))
		flux = np.full((xs_mesh.n_reg, 2), [2.0, 3.0])
		source.initialize_group(1, flux)
		assert source.fixed == pytest.approx(np.full(xs_mesh.n_reg, 0.02*2.0))
		qbar = np.zeros(xs_mesh.n_reg)
		source.self_scatter(1, flux[:, 1], qbar)
		assert qbar == pytest.approx(np.full(xs_mesh.n_reg, (0.04 + 1.1*3.0)*RFPI))

	def test_fission(self, xs_mesh):
		source = Source(xs_mesh, k=2.0)
		flux = np.ones((xs_mesh.n_reg, 2))
		source.initialize_group(0, flux)
		assert source.fixed == pytest.approx(np.full(xs_mesh.n_reg, 0.105/2.0))

	def test_external_shape(self, xs_mesh):
		with pytest.raises(ValueError, match="shape"):
			Source(xs_mesh, np.ones((xs_mesh.n_reg, 3)))

	def test_parse_group_mismatch(self, make_mesh, xs_mesh):
		node = ET.fromstring('<source><material id="1">1.0</material></source>')
		with pytest.raises(ValueError, match="groups"):
			parse_source(node, make_mesh(npin=1, nz=1), xs_mesh)

	def test_parse(self, make_mesh, xs_mesh):
		node = ET.fromstring('<source><material id="1">1.0 0.5</material></source>')
		source = parse_source(node, make_mesh(npin=1, nz=1), xs_mesh)
		assert (source.external == [1.0, 0.5]).all()


class TestOutput:
	"""The HDF5 sink and the run context."""

	def test_write_with_dims(self, tmp_path):
		filename = str(tmp_path/"out.h5")
		with H5Output(filename) as sink:
			sink.write("a/b", np.arange(6), [2, 3])
			sink.write("a/b", np.arange(6.0))
			assert "a/b" in sink
		with h5py.File(filename, "r") as f:
			assert f["a/b"].shape == (6,)

	def test_create_group(self, tmp_path):
		filename = str(tmp_path/"out.h5")
		with H5Output(filename) as sink:
			group = sink.create_group("a/b")
			assert sink.create_group("a/b").name == group.name
			assert "a/b" in sink
		with h5py.File(filename, "r") as f:
			assert isinstance(f["a/b"], h5py.Group)

	def test_dims_mismatch(self, tmp_path):
		with H5Output(str(tmp_path/"out.h5")) as sink:
			with pytest.raises(ValueError, match="dimensions"):
				sink.write("x", np.arange(5), [2, 3])

	def test_context_write(self, tmp_path, ls4):
		filename = str(tmp_path/"out.h5")
		with RunContext(H5Output(filename)) as context:
			context.write(ls4)
		with h5py.File(filename, "r") as f:
			for key in MAPPING_KEYS:
				assert f["ang_quad/" + key].shape == (len(ls4),)

	def test_context_without_sink(self, ls4):
		context = RunContext()
		context.write(ls4)
		assert context.log.name == "sweeper"
