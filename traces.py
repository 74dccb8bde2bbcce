import numpy as np

from errors import ConfigurationError


class Trace:
    """
    Eligibility trace over a weight vector of size `dimension`.
    update(decay, phi) decays every entry then marks the active features;
    entries smaller than `threshold` are dropped to zero.
    """
    def __init__(self, dimension, threshold=1e-8):
        dimension = int(dimension)
        if dimension <= 0:
            raise ConfigurationError(f"trace dimension must be positive, got {dimension}")
        self.vect = np.zeros(dimension, dtype=np.float64)
        self.threshold = float(threshold)

    @property
    def dimension(self):
        return self.vect.size

    def update(self, decay, phi):
        self.vect *= decay
        self._apply(phi)
        if self.threshold > 0:
            self.vect[np.abs(self.vect) < self.threshold] = 0.0

    def _apply(self, phi):
        raise NotImplementedError

    def clear(self):
        self.vect[:] = 0.0

    def dot(self, phi):
        return phi.dot(self.vect)

    def add(self, scale, phi):
        phi.add_to(self.vect, scale)


class ATrace(Trace):
    """Accumulating trace."""
    def _apply(self, phi):
        phi.add_to(self.vect, 1.0)


class RTrace(Trace):
    """Replacing trace: active features are reset to 1."""
    def _apply(self, phi):
        self.vect[phi.indices] = 1.0


class AMaxTrace(Trace):
    """Accumulating trace clipped at `maximum`."""
    def __init__(self, dimension, threshold=1e-8, maximum=1.0):
        super().__init__(dimension, threshold)
        self.maximum = float(maximum)

    def _apply(self, phi):
        phi.add_to(self.vect, 1.0)
        np.minimum(self.vect, self.maximum, out=self.vect)


TRACES = {
    "accumulating": ATrace,
    "replacing": RTrace,
    "amax": AMaxTrace,
}
