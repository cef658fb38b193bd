# Level Symmetric
#
# First-octant direction sets for the equal-weight level-symmetric quadrature

import numpy as np

# First direction cosine for each supported order
MU1 = {
	2: 0.5773503,
	4: 0.3500212,
	6: 0.2666355,
	8: 0.2182179,
	12: 0.1672126,
	16: 0.1389568
}


class LevelSymmetricQuadrature(object):
	"""Generator for the first octant of an equal-weight LS set"""

	def getQuadratureSet(self, N):
		"""Get the first-octant directions for the LS order N

		Parameter:
		----------
		N:          int; even quadrature order. Must be in MU1.

		Returns:
		--------
		dict of {"mu", "eta", "xi", "weight"}; arrays of the x, y, and z
		direction cosines and the weights. The weights sum to 1.
		"""
		if N not in MU1:
			errstr = "Level-symmetric quadrature is not available for S{}. " \
			         "Use one of: {}".format(N, sorted(MU1))
			raise ValueError(errstr)
		n2 = N // 2
		mu1 = MU1[N]
		if N == 2:
			mu1 = np.sqrt(1.0/3)
			delta = 0.0
		else:
			delta = 2*(1 - 3*mu1**2)/(N - 2)
		levels = np.sqrt(mu1**2 + delta*np.arange(n2))

		mus = []
		etas = []
		xis = []
		for i in range(n2):
			for j in range(n2 - i):
				# i + j + k == n2 - 1 for 0-indexed levels
				k = n2 - 1 - i - j
				mus.append(levels[i])
				etas.append(levels[j])
				xis.append(levels[k])
		ndo = len(mus)
		assert ndo == N*(N + 2) // 8

		sdict = {
			"mu": np.array(mus),
			"eta": np.array(etas),
			"xi": np.array(xis),
			"weight": np.ones(ndo)/ndo
		}
		return sdict
