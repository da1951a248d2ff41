# -- Interpolation Kernel Test -- #

'''
Tests for the B-spline interpolation kernels and stencil expansion.

Sean Bowman [10/19/2026]
'''

import numpy as np
import pytest

from mpmSim.errors import ConfigurationError, ShapeMismatchError
from mpmSim.mpm.interpolation import (
    CubicBSplineKernel,
    LinearKernel,
    QuadraticBSplineKernel,
    createInterpolationKernel,
    evaluateStencil,
)

KERNEL_NAMES = ['linear', 'quadraticBSpline', 'cubicBSpline']


@pytest.fixture
def gridCoords():
    '''Random interior positions in grid-index space, 2D and 3D.'''
    rng = np.random.default_rng(42)
    return {2: rng.uniform(3.0, 7.0, size=(25, 2)), 3: rng.uniform(3.0, 7.0, size=(10, 3))}


@pytest.mark.parametrize('name', KERNEL_NAMES)
@pytest.mark.parametrize('dim', [2, 3])
def testPartitionOfUnity(name, dim, gridCoords):
    '''Weights sum to one and gradients sum to zero per particle.'''
    kernel = createInterpolationKernel(name)
    dx = np.full(dim, 0.1)
    stencil = evaluateStencil(kernel, gridCoords[dim], dx)

    assert stencil.size == kernel.stencilWidth ** dim
    assert np.allclose(stencil.weights.sum(axis=1), 1.0)
    assert np.allclose(stencil.weightGradients.sum(axis=1), 0.0, atol=1e-9)
    assert np.all(stencil.weights >= -1e-12)


@pytest.mark.parametrize('name', KERNEL_NAMES)
def testLinearReproduction(name, gridCoords):
    '''sum_i w_ip x_i reproduces the particle position.'''
    kernel = createInterpolationKernel(name)
    coords = gridCoords[2]
    stencil = evaluateStencil(kernel, coords, np.ones(2))

    reconstructed = np.einsum('ps,psd->pd', stencil.weights, stencil.nodeIndices.astype(float))
    assert np.allclose(reconstructed, coords)


@pytest.mark.parametrize('name', KERNEL_NAMES)
def testGradientMatchesFiniteDifference(name):
    kernel = createInterpolationKernel(name)
    point = np.array([[4.3, 5.6]])
    dx = np.array([0.5, 0.25])
    h = 1e-6

    stencil = evaluateStencil(kernel, point, dx)
    for d in range(2):
        shifted = point.copy()
        shifted[0, d] += h
        # Same base nodes as long as the shift stays inside the cell
        plus = evaluateStencil(kernel, shifted, dx)
        fd = (plus.weights - stencil.weights) / (h * dx[d])
        assert np.allclose(stencil.weightGradients[:, :, d], fd, atol=1e-4)


def testStencilWidths():
    assert LinearKernel().stencilWidth == 2
    assert QuadraticBSplineKernel().stencilWidth == 3
    assert CubicBSplineKernel().stencilWidth == 4
    assert QuadraticBSplineKernel().margin == pytest.approx(0.5)


def testQuadraticBaseNode():
    '''Quadratic stencil starts one node below the nearest node.'''
    stencil = evaluateStencil(QuadraticBSplineKernel(), np.array([[4.2, 4.8]]), np.ones(2))
    assert tuple(stencil.nodeIndices[0, 0]) == (3, 4)


def testFactoryAndShapeErrors():
    with pytest.raises(ConfigurationError):
        createInterpolationKernel('gimp')
    with pytest.raises(ShapeMismatchError):
        LinearKernel().weights(np.array([1.0, 2.0]))
