# -- Geometry Package -- #

'''
Uniform Cartesian grid and its node/cell iterators.

Sean Bowman [10/19/2026]
'''

from mpmSim.geometry.gridIterator import GridNodeIterator, GridCellIterator
from mpmSim.geometry.uniformGrid import Range, UniformGrid
