# -- MPM Engine Package -- #

'''
Core Material Point Method (MPM) engine for elastic solids.

Provides the particle record, interpolation kernels, constitutive
models, the implicit grid solve, driver plugins, checkpoints and
the MpmSolidDriver.

Sean Bowman [10/19/2026]
'''

from mpmSim.mpm.protocols import SimulationConfig, MaterialConfig, SimulationState, SimulationDriver
from mpmSim.mpm.particles import SolidParticle, ParticleArrays, createUniformParticles
from mpmSim.mpm.interpolation import (
    LinearKernel,
    QuadraticBSplineKernel,
    CubicBSplineKernel,
    createInterpolationKernel,
)
from mpmSim.mpm.constitutive import (
    LinearElastic,
    StVenantKirchhoff,
    NeoHookean,
    FixedCorotated,
    createConstitutiveModel,
    lameParameters,
)
from mpmSim.mpm.plugins import (
    DriverPluginBase,
    PluginRegistry,
    ProgressLogPlugin,
    FrameRecorderPlugin,
    EnergyMonitorPlugin,
)
from mpmSim.mpm.checkpoint import CheckpointData, readCheckpoint, writeCheckpoint
from mpmSim.mpm.mpmSolid import MpmSolidDriver, DriverStage
