# -- Shared Test Fixtures -- #

'''
Fixtures shared by the driver, plugin and checkpoint tests.

Sean Bowman [10/19/2026]
'''

import numpy as np
import pytest

from mpmSim.mpm.mpmSolid import MpmSolidDriver
from mpmSim.mpm.particles import createUniformParticles
from mpmSim.mpm.protocols import MaterialConfig, SimulationConfig


@pytest.fixture
def smallConfig(tmp_path):
    '''Coarse 2D box, two short frames, output into the test directory.'''
    return SimulationConfig(
        startFrame=0,
        endFrame=2,
        frameRate=100.0,
        maxTimeStep=2.5e-3,
        outputDir=str(tmp_path / 'output'),
        domainMin=np.zeros(2),
        domainMax=np.ones(2),
        cellCount=8,
        material=MaterialConfig(youngsModulus=1.0e3, poissonRatio=0.3, density=100.0),
    )


@pytest.fixture
def blockParticles():
    '''4 x 4 block of particles in the middle of the unit box.'''
    return createUniformParticles(
        regionMin=[0.375, 0.375], regionMax=[0.625, 0.625], spacing=0.0625, density=100.0,
    )


@pytest.fixture
def configuredDriver(smallConfig, blockParticles):
    driver = MpmSolidDriver(smallConfig)
    driver.setParticles(blockParticles)
    return driver
