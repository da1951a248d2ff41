# -- Elastic Block Drop Scenario -- #

'''
Elastic block dropped onto the floor of a closed box.

The block starts at rest (or with an initial velocity) above the
floor, falls under gravity, hits the slip floor and rebounds. The
block's elastic response and the total energy make this the
standard smoke test for the MPM solid driver.

Box geometry (2D, gravity in -y):
    +---------------------------+  y = domainSize
    |                           |
    |        +---------+        |
    |        |  block  |        |
    |        +---------+        |  y = dropHeight
    |                           |
    +---------------------------+  y = 0 (floor)

In 3D the vertical axis is z.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from mpmSim import constants as const
from mpmSim.mpm.particles import SolidParticle, createUniformParticles
from mpmSim.mpm.protocols import MaterialConfig, SimulationConfig


######################################################################
# -- Elastic Block Configuration -- #
######################################################################

@dataclass
class ElasticBlockConfig:
    '''
    Configuration for the elastic block scenario.

    Parameters:
    -----------
    dimensions : int
        2 or 3
    domainSize : float
        Edge length of the cubic box [m]
    cellCount : int
        Grid cells per axis
    blockSize : float
        Edge length of the block [m]
    dropHeight : float
        Height of the block's lower face above the floor [m]
    particlesPerCell : int
        Particles per cell along each axis
    initialVelocity : list[float] | None
        Initial block velocity [m/s] (zero when omitted)
    material : MaterialConfig
        Block material
    endFrame : int
        Number of frames to simulate
    frameRate : float
        Frames per second
    maxTimeStep : float
        Upper bound on the step size [s]
    integration : str
        'explicit' or 'implicit'
    interpolation : str
        Interpolation kernel name
    '''

    dimensions: int = 2
    domainSize: float = 1.0
    cellCount: int = 32
    blockSize: float = 0.25
    dropHeight: float = 0.4
    particlesPerCell: int = 2
    initialVelocity: list[float] | None = None
    material: MaterialConfig = field(default_factory=MaterialConfig)
    endFrame: int = 50
    frameRate: float = 50.0
    maxTimeStep: float = 1.0e-3
    integration: str = 'explicit'
    interpolation: str = 'quadraticBSpline'

    @property
    def dx(self) -> float:
        '''Grid cell size [m].'''
        return self.domainSize / self.cellCount

    @property
    def particleSpacing(self) -> float:
        '''Initial particle spacing [m].'''
        return self.dx / self.particlesPerCell

    @classmethod
    def small2D(cls) -> ElasticBlockConfig:
        '''
        Small 2D drop for quick testing.

        64 particles on a 16x16 grid, runs in seconds.
        '''
        return cls(
            dimensions=2,
            cellCount=16,
            blockSize=0.25,
            dropHeight=0.3,
            endFrame=10,
        )

    @classmethod
    def standard2D(cls) -> ElasticBlockConfig:
        '''
        Standard 2D drop.

        256 particles on a 32x32 grid.
        '''
        return cls(
            dimensions=2,
            cellCount=32,
            blockSize=0.25,
            dropHeight=0.4,
            endFrame=50,
        )

    @classmethod
    def small3D(cls) -> ElasticBlockConfig:
        '''
        Small 3D drop.

        343 particles on a 12^3 grid.
        '''
        return cls(
            dimensions=3,
            cellCount=12,
            blockSize=0.3,
            dropHeight=0.3,
            particlesPerCell=2,
            endFrame=10,
        )


######################################################################
# -- Scenario Creation -- #
######################################################################

def createElasticBlock(
    blockConfig: ElasticBlockConfig,
) -> tuple[SimulationConfig, list[SolidParticle]]:
    '''
    Create the elastic block simulation from configuration.

    Generates:
    1. SimulationConfig for a closed box with a slip floor
    2. Block particles on a regular lattice, centered horizontally

    Parameters:
    -----------
    blockConfig : ElasticBlockConfig
        Scenario configuration

    Returns:
    --------
    tuple[SimulationConfig, list[SolidParticle]] :
        Ready-to-run configuration and block particles
    '''
    dim = blockConfig.dimensions
    size = blockConfig.domainSize
    verticalAxis = dim - 1

    gravity = np.zeros(dim)
    gravity[verticalAxis] = -const.gravity

    simConfig = SimulationConfig(
        startFrame=0,
        endFrame=blockConfig.endFrame,
        frameRate=blockConfig.frameRate,
        maxTimeStep=blockConfig.maxTimeStep,
        domainMin=np.zeros(dim),
        domainMax=np.full(dim, size),
        cellCount=blockConfig.cellCount,
        gravity=gravity,
        interpolation=blockConfig.interpolation,
        integration=blockConfig.integration,
        boundaryMode='slip',
        material=blockConfig.material,
    )
    simConfig.validate()

    # Block centered horizontally, lower face at dropHeight
    blockMin = np.full(dim, 0.5 * (size - blockConfig.blockSize))
    blockMin[verticalAxis] = blockConfig.dropHeight
    blockMax = blockMin + blockConfig.blockSize

    particles = createUniformParticles(
        regionMin=blockMin,
        regionMax=blockMax,
        spacing=blockConfig.particleSpacing,
        density=blockConfig.material.density,
        velocity=blockConfig.initialVelocity,
    )

    return (simConfig, particles)
