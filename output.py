# Output
#
# Run context and the HDF5 output sink

import logging

import numpy as np
import h5py


class H5Output(object):
	"""Output sink writing datasets to an HDF5 file

	Can be used as a context manager, which closes the file on exit.

	Parameters:
	-----------
	filename:       str; path of the HDF5 file
	mode:           str; h5py file mode
					[Default: "w"]
	"""
	def __init__(self, filename, mode="w"):
		self.filename = filename
		self.file = h5py.File(filename, mode)

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc_value, traceback):
		self.close()

	def __contains__(self, name):
		return name in self.file

	def __getitem__(self, name):
		return self.file[name]

	def write(self, name, data, dims=None):
		"""Write one dataset, replacing any dataset of the same name.

		Parameters:
		-----------
		name:       str; path of the dataset. Parent groups are created.
		data:       scalar or array-like
		dims:       iterable of ints; shape to store the data with
					[Default: None (keep the shape of the data)]
		"""
		data = np.asarray(data)
		if dims is not None:
			dims = tuple(int(d) for d in dims)
			if int(np.prod(dims)) != data.size:
				errstr = "Cannot write {} values to '{}' with dimensions {}.".format(
					data.size, name, dims)
				raise ValueError(errstr)
			data = data.reshape(dims)
		if name in self.file:
			del self.file[name]
		self.file.create_dataset(name, data=data)

	def create_group(self, name):
		"""Get the group at a path, creating it and its parents if needed"""
		return self.file.require_group(name)

	def close(self):
		if self.file:
			self.file.close()


class RunContext(object):
	"""Logging destination and output sink for one run

	Parameters:
	-----------
	output:         H5Output, or None to disable output
					[Default: None]
	log:            logging.Logger
					[Default: the "sweeper" logger]
	"""
	def __init__(self, output=None, log=None):
		self.output = output
		if log is None:
			log = logging.getLogger("sweeper")
		self.log = log

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc_value, traceback):
		self.close()

	def write(self, obj):
		"""Have an object with an output(sink) method write itself"""
		if self.output is None:
			self.log.debug("No output sink; skipping output of %s", type(obj).__name__)
			return
		obj.output(self.output)

	def close(self):
		if self.output is not None:
			self.output.close()
