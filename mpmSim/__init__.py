# -- mpmSim Package -- #

'''
Hybrid Lagrangian-Eulerian simulation core using the Material Point Method.

Deformable-body particles are advanced in time against a background
uniform grid. The package is split into:
    - core: dynamic arrays and sparse linear algebra
    - geometry: uniform Cartesian grid with node/cell iteration
    - mpm: particles, transfer kernels, constitutive models and the driver
    - export / visualization: read-only consumers of simulation frames

Sean Bowman [10/19/2026]
'''

__version__ = '0.1.0'

from mpmSim.errors import (
    MpmSimError,
    PreconditionError,
    InvalidIndexError,
    ShapeMismatchError,
    ZeroDivisorError,
    IteratorStateError,
    DriverStateError,
    CheckpointFormatError,
    ConfigurationError,
)
from mpmSim.core.sparseMatrix import SparseMatrix, MajorOrder
from mpmSim.core.sparseVector import SparseVector
from mpmSim.geometry.uniformGrid import Range, UniformGrid
from mpmSim.mpm.protocols import SimulationConfig, MaterialConfig
from mpmSim.mpm.particles import SolidParticle
from mpmSim.mpm.mpmSolid import MpmSolidDriver, DriverStage
