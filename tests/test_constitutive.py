# -- Constitutive Model Test -- #

'''
Tests for the hyperelastic constitutive models.

Sean Bowman [10/19/2026]
'''

import numpy as np
import pytest

from mpmSim.errors import ConfigurationError
from mpmSim.mpm.constitutive import (
    FixedCorotated,
    NeoHookean,
    createConstitutiveModel,
    lameParameters,
)
from mpmSim.mpm.protocols import MaterialConfig

MODEL_NAMES = ['linearElastic', 'stVenantKirchhoff', 'neoHookean', 'fixedCorotated']


def _rotation2D(angle):
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s], [s, c]])


def testLameParameters():
    mu, lam = lameParameters(1.0e4, 0.25)
    assert mu == pytest.approx(4000.0)
    assert lam == pytest.approx(4000.0)


@pytest.mark.parametrize('name', MODEL_NAMES)
@pytest.mark.parametrize('dim', [2, 3])
def testRestStateIsStressFree(name, dim):
    '''P(I) = 0 and psi(I) = 0 for every model.'''
    model = createConstitutiveModel(MaterialConfig(model=name))
    F = np.broadcast_to(np.eye(dim), (4, dim, dim)).copy()

    assert np.allclose(model.firstPiolaStress(F), 0.0)
    assert np.allclose(model.energyDensity(F), 0.0)


@pytest.mark.parametrize('name', MODEL_NAMES)
def testStressIsEnergyGradient(name):
    '''P = d psi / dF checked by central differences.'''
    model = createConstitutiveModel(MaterialConfig(model=name, youngsModulus=100.0))
    F = np.array([[[1.1, 0.05], [-0.02, 0.93]]])
    P = model.firstPiolaStress(F)
    h = 1e-6

    for i in range(2):
        for j in range(2):
            Fp = F.copy()
            Fm = F.copy()
            Fp[0, i, j] += h
            Fm[0, i, j] -= h
            fd = (model.energyDensity(Fp) - model.energyDensity(Fm)) / (2.0 * h)
            assert P[0, i, j] == pytest.approx(fd[0], rel=1e-4, abs=1e-6)


@pytest.mark.parametrize('modelClass', [NeoHookean, FixedCorotated])
def testRotationInvariance(modelClass):
    '''Rigid rotations store no energy in the nonlinear models.'''
    model = modelClass(1.0e4, 0.3)
    F = _rotation2D(0.7)[np.newaxis]
    assert model.energyDensity(F)[0] == pytest.approx(0.0, abs=1e-8)


def testCompressionStoresEnergy():
    model = NeoHookean(1.0e4, 0.3)
    F = np.array([np.eye(3) * 0.9])
    assert model.energyDensity(F)[0] > 0.0


def testWaveSpeed():
    model = createConstitutiveModel(MaterialConfig(youngsModulus=1.0e4, poissonRatio=0.25, density=1000.0))
    assert model.stiffnessModulus == pytest.approx(12000.0)
    assert model.waveSpeed(1000.0) == pytest.approx(np.sqrt(12.0))


def testUnknownModel():
    with pytest.raises(ConfigurationError):
        createConstitutiveModel(MaterialConfig(model='druckerPrager'))
