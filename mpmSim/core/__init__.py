# -- Core Containers and Linear Algebra -- #

'''
Dynamic arrays and the sparse matrix/vector engine used for
per-step linear systems on grid degrees of freedom.

Sean Bowman [10/19/2026]
'''

from mpmSim.core.dynamicArray import DynamicArray, ArrayIterator
from mpmSim.core.sparseVector import SparseVector
from mpmSim.core.sparseMatrix import SparseMatrix, SparseMatrixIterator, MajorOrder, Trituple
