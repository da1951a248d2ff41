# -- Implicit Solver Test -- #

'''
Tests for the implicit grid system assembly and solve.

Sean Bowman [10/19/2026]
'''

import numpy as np
import pytest

from mpmSim.core import SparseMatrix
from mpmSim.errors import ShapeMismatchError
from mpmSim.mpm.implicitSolver import assembleGridSystem, solveGridSystem


def _twoParticleStencil():
    '''Two particles sharing node 5 on a 1D-like flat index space.'''
    nodeIndices = np.array([[4, 5], [5, 6]])
    weightGradients = np.array([[[-1.0], [1.0]], [[-2.0], [2.0]]])
    return nodeIndices, weightGradients


def testAssemblySymmetricWithMassDiagonal():
    nodeIndices, weightGradients = _twoParticleStencil()
    activeNodes = np.array([4, 5, 6])
    masses = np.array([1.0, 2.0, 3.0])

    system = assembleGridSystem(
        activeNodes, nodeIndices, weightGradients,
        volumes=np.array([1.0, 0.5]), modulus=10.0, nodeMasses=masses, dt=0.1,
    )
    dense = system.toDense()

    # dt^2 k V (grad w_i . grad w_j) accumulated over both particles
    expected = np.array([
        [1.0 + 0.1, -0.1, 0.0],
        [-0.1, 2.0 + 0.1 + 0.2, -0.2],
        [0.0, -0.2, 3.0 + 0.2],
    ])
    assert np.allclose(dense, expected)
    assert np.allclose(dense, dense.T)


def testInactiveStencilNodesIgnored():
    '''Stencil nodes without mass contribute no stiffness.'''
    nodeIndices, weightGradients = _twoParticleStencil()
    activeNodes = np.array([4, 5])

    system = assembleGridSystem(
        activeNodes, nodeIndices, weightGradients,
        volumes=np.array([1.0, 0.5]), modulus=10.0, nodeMasses=np.array([1.0, 2.0]), dt=0.1,
    )
    dense = system.toDense()
    assert dense.shape == (2, 2)
    # Particle 2 keeps its self term on node 5 but loses the coupling to node 6
    assert dense[1, 1] == pytest.approx(2.0 + 0.1 + 0.2)
    assert dense[0, 1] == pytest.approx(-0.1)


def testAssemblyShapeErrors():
    nodeIndices, weightGradients = _twoParticleStencil()
    with pytest.raises(ShapeMismatchError):
        assembleGridSystem(np.array([4, 5, 6]), nodeIndices, weightGradients,
                           np.ones(2), 1.0, np.ones(2), 0.1)
    with pytest.raises(ShapeMismatchError):
        assembleGridSystem(np.array([4, 5, 6]), nodeIndices[:1], weightGradients,
                           np.ones(2), 1.0, np.ones(3), 0.1)


def testSolveMatchesDense():
    '''CG solution agrees with a dense solve for each column.'''
    rng = np.random.default_rng(0)
    B = rng.uniform(-1.0, 1.0, size=(6, 6))
    A = B @ B.T + 6.0 * np.eye(6)
    system = SparseMatrix.fromDense(A)
    rhs = rng.uniform(-1.0, 1.0, size=(6, 2))
    rhs[:, 1] = 0.0

    solution = solveGridSystem(system, rhs)
    assert solution.shape == (6, 2)
    assert np.allclose(solution[:, 0], np.linalg.solve(A, rhs[:, 0]), atol=1e-8)
    assert np.allclose(solution[:, 1], 0.0)

    vector = solveGridSystem(system, rhs[:, 0])
    assert vector.shape == (6,)


def testSolveShapeErrors():
    with pytest.raises(ShapeMismatchError):
        solveGridSystem(SparseMatrix(2, 3), np.ones(2))
    with pytest.raises(ShapeMismatchError):
        solveGridSystem(SparseMatrix.fromDense(np.eye(2)), np.ones(3))
