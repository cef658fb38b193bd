"""Pytest fixtures for the MoC sweeper tests."""

import xml.etree.ElementTree as ET

import numpy as np
import pytest

from constants import SURFACE_NAMES
from pin_mesh import RectPinMesh
from pincell import Pin
from lattice import Lattice
from assembly import Assembly
from core import Core
from core_mesh import CoreMesh
from material import Material, MaterialLib
from xs_mesh import XSMesh
from source import Source
from quadrature import AngularQuadrature
from rays import RayData


def uniform_core(bc="reflective", npin=1, nz=2, pitch=1.0, sub=(2, 2), hz=1.0):
	"""A core of one assembly holding npin x npin identical rectangular pins"""
	pin_mesh = RectPinMesh(1, pitch, pitch, *sub)
	pin = Pin(1, pin_mesh, [1]*pin_mesh.n_xsreg)
	lattice = Lattice(1, npin, npin, [pin]*npin**2)
	assembly = Assembly(1, [lattice]*nz, hz)
	return Core(1, 1, [assembly], {name: bc for name in SURFACE_NAMES})


@pytest.fixture
def make_mesh():
	"""Factory for CoreMeshes of identical pins"""
	def factory(**kwargs):
		return CoreMesh(uniform_core(**kwargs))
	return factory


@pytest.fixture
def absorber_lib():
	"""One-group purely absorbing material with a unit cross section"""
	mat = Material({"transport": [1.0], "absorption": [1.0]}, 1, "absorber")
	return MaterialLib(1, {1: mat})


@pytest.fixture
def scatterer_lib():
	"""One-group material that scatters half of its collisions"""
	mat = Material({"transport": [1.0], "absorption": [0.5], "scatter": [0.5]}, 1, "scatterer")
	return MaterialLib(1, {1: mat})


@pytest.fixture
def ls4():
	return AngularQuadrature.level_symmetric(4)


@pytest.fixture
def make_sweep_inputs():
	"""Factory for the (quadrature, rays, xs_mesh, source) used by a sweeper"""
	def factory(mesh, material_lib, q, order=4, spacing=0.15, volume_correction="flat"):
		ang_quad = AngularQuadrature.level_symmetric(order)
		rays = RayData(mesh, ang_quad, spacing, volume_correction)
		xs_mesh = XSMesh(mesh, material_lib)
		source = Source(xs_mesh, np.full((mesh.n_reg, xs_mesh.ng), q))
		return ang_quad, rays, xs_mesh, source
	return factory


CORE_XML = """\
<problem>
	<mesh id="1" type="rect" pitch="1.26">
		<sub_x>2</sub_x>
		<sub_y>2</sub_y>
	</mesh>
	<mesh id="2" type="cyl" pitch="1.26">
		<radii>0.54</radii>
		<sub_radii>2</sub_radii>
		<sub_azi>4</sub_azi>
	</mesh>
	<pin id="1" mesh="1">2 2 2 2</pin>
	<pin id="2" mesh="2">1 2</pin>
	<lattice id="1" nx="2" ny="2">
		1 1
		2 1
	</lattice>
	<lattice id="2" nx="2" ny="2">
		1 1
		1 1
	</lattice>
	<assembly id="1" np="3">
		<lattices>1 1 2</lattices>
		<hz>1.0 2.0 1.5</hz>
	</assembly>
	<core nx="1" ny="1" north="reflective" south="vacuum" east="vacuum"
	      west="reflective" top="vacuum" bottom="vacuum">
		1
	</core>
	<material_lib ng="2">
		<material id="1" name="fuel">
			<absorption>0.01 0.1</absorption>
			<nu-fission>0.005 0.1</nu-fission>
			<transport>0.5 1.2</transport>
			<scatter>0.47 0.0 0.02 1.1</scatter>
		</material>
		<material id="2" name="moderator">
			<absorption>0.001 0.02</absorption>
			<transport>0.6 1.5</transport>
			<scatter>0.55 0.0 0.049 1.48</scatter>
		</material>
	</material_lib>
	<source>
		<material id="1">1.0 0.0</material>
	</source>
	<sweeper type="2d3d" n_inner="2" threads="1">
		<ang_quad type="ls" order="4"/>
		<rays spacing="0.1" volume_correction="flat"/>
	</sweeper>
</problem>
"""


@pytest.fixture
def core_xml():
	"""Root element of a small two-group, three-plane input deck"""
	return ET.fromstring(CORE_XML)
