# -- MPM Simulation Protocols -- #

'''
Configuration, state snapshot and driver protocol for MPM simulations.

Defines the core data structures (SimulationConfig, MaterialConfig,
SimulationState) and the capability interface every simulation
driver satisfies.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Protocol, Sequence, TYPE_CHECKING

import numpy as np

from mpmSim import constants as const
from mpmSim.errors import ConfigurationError, PreconditionError
from mpmSim.geometry.uniformGrid import Range, UniformGrid

if TYPE_CHECKING:
    from mpmSim.mpm.plugins import DriverPluginBase

logger = logging.getLogger(__name__)

INTERPOLATION_TYPES = ('linear', 'quadraticBSpline', 'cubicBSpline')
INTEGRATION_TYPES = ('explicit', 'implicit')
BOUNDARY_MODES = ('slip', 'sticky')


######################################################################
# -- Material Configuration -- #
######################################################################

@dataclass
class MaterialConfig:
    '''
    Elastic material parameters.

    Parameters:
    -----------
    model : str
        Constitutive model: 'linearElastic', 'stVenantKirchhoff',
        'neoHookean' or 'fixedCorotated'
    youngsModulus : float
        Young's modulus E [Pa]
    poissonRatio : float
        Poisson ratio nu, in [0, 0.5)
    density : float
        Reference density [kg/m^3]
    '''

    model: str = 'neoHookean'
    youngsModulus: float = 1.0e4
    poissonRatio: float = 0.3
    density: float = 1000.0


######################################################################
# -- Simulation Configuration -- #
######################################################################

@dataclass
class SimulationConfig:
    '''
    Configuration for an MPM simulation.

    Defines the frame range, time stepping bounds, output settings,
    background grid and solver options. All values in SI units.

    Parameters:
    -----------
    startFrame : int
        First frame index
    endFrame : int
        Frame index at which the run finishes
    frameRate : float
        Frames per simulated second
    maxTimeStep : float
        Upper bound on the step size [s]
    writeToFile : bool
        Write a checkpoint at every frame boundary
    outputDir : str
        Directory for checkpoint files
    domainMin : np.ndarray
        Lower corner of the grid domain [m]
    domainMax : np.ndarray
        Upper corner of the grid domain [m]
    cellCount : int | Sequence[int]
        Grid cells per axis
    gravity : np.ndarray
        Gravity vector [m/s^2]
    interpolation : str
        'linear', 'quadraticBSpline' or 'cubicBSpline'
    integration : str
        'explicit' or 'implicit'
    flipRatio : float
        FLIP/PIC blend in [0, 1]
    cflNumber : float
        Stability factor for adaptive time stepping, in (0, 1]
    boundaryThickness : int
        Node layers at each wall that receive the boundary condition
    boundaryMode : str
        'slip' removes the outward normal velocity, 'sticky' all velocity
    material : MaterialConfig
        Material parameters
    '''

    startFrame: int = 0
    endFrame: int = 50
    frameRate: float = 50.0
    maxTimeStep: float = 1.0e-3
    writeToFile: bool = False
    outputDir: str = 'output'
    domainMin: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0]))
    domainMax: np.ndarray = field(default_factory=lambda: np.array([1.0, 1.0]))
    cellCount: int | Sequence[int] = 32
    gravity: np.ndarray = field(default_factory=lambda: np.array([0.0, -const.gravity]))
    interpolation: str = 'quadraticBSpline'
    integration: str = 'explicit'
    flipRatio: float = const.flipRatio
    cflNumber: float = const.cflNumber
    boundaryThickness: int = const.defaultBoundaryThickness
    boundaryMode: str = 'slip'
    material: MaterialConfig = field(default_factory=MaterialConfig)

    def __post_init__(self) -> None:
        self.domainMin = np.asarray(self.domainMin, dtype=float)
        self.domainMax = np.asarray(self.domainMax, dtype=float)
        self.gravity = np.asarray(self.gravity, dtype=float)

    ######################################################################
    # -- Derived Quantities -- #
    ######################################################################

    @property
    def dimensions(self) -> int:
        '''Number of spatial dimensions.'''
        return int(self.domainMin.shape[0])

    @property
    def frameDuration(self) -> float:
        '''Simulated time per frame [s].'''
        return 1.0 / self.frameRate

    @property
    def startTime(self) -> float:
        '''Simulated time at startFrame [s].'''
        return self.startFrame * self.frameDuration

    @property
    def endTime(self) -> float:
        '''Simulated time at endFrame [s].'''
        return self.endFrame * self.frameDuration

    @property
    def domain(self) -> Range:
        '''Grid domain as a Range.'''
        return Range(self.domainMin, self.domainMax)

    def createGrid(self) -> UniformGrid:
        '''Construct the background grid described by this configuration.'''
        try:
            return UniformGrid(self.domain, self.cellCount)
        except PreconditionError as e:
            raise ConfigurationError(f'Invalid grid description: {e}') from e

    ######################################################################
    # -- Validation -- #
    ######################################################################

    def validate(self) -> None:
        '''
        Check every parameter.

        Raises:
        -------
        ConfigurationError : Naming the first invalid field
        '''
        def fail(message: str) -> None:
            raise ConfigurationError(f'Invalid configuration: {message}')

        if self.startFrame < 0:
            fail(f'startFrame must be >= 0, got {self.startFrame}')
        if self.endFrame < self.startFrame:
            fail(f'endFrame ({self.endFrame}) must be >= startFrame ({self.startFrame})')
        if not self.frameRate > 0.0:
            fail(f'frameRate must be positive, got {self.frameRate}')
        if not self.maxTimeStep > 0.0:
            fail(f'maxTimeStep must be positive, got {self.maxTimeStep}')

        if self.domainMin.ndim != 1 or self.domainMin.shape != self.domainMax.shape:
            fail('domainMin and domainMax must be vectors of equal length')
        if self.dimensions not in (2, 3):
            fail(f'only 2D and 3D domains are supported, got {self.dimensions}D')
        if np.any(self.domainMax <= self.domainMin):
            fail('domainMax must exceed domainMin on every axis')
        if self.gravity.shape != self.domainMin.shape:
            fail(f'gravity must have {self.dimensions} components, got {self.gravity.shape}')

        counts = np.atleast_1d(np.asarray(self.cellCount))
        if not np.issubdtype(counts.dtype, np.integer):
            fail(f'cellCount must be integer, got {self.cellCount}')
        if counts.shape not in ((1,), (self.dimensions,)):
            fail(f'cellCount must be an int or {self.dimensions} ints, got {self.cellCount}')
        if np.any(counts <= 0):
            fail(f'cellCount must be positive, got {self.cellCount}')

        if self.interpolation not in INTERPOLATION_TYPES:
            fail(f'unknown interpolation {self.interpolation!r}')
        if self.integration not in INTEGRATION_TYPES:
            fail(f'unknown integration {self.integration!r}')
        if self.boundaryMode not in BOUNDARY_MODES:
            fail(f'unknown boundaryMode {self.boundaryMode!r}')
        if not 0.0 <= self.flipRatio <= 1.0:
            fail(f'flipRatio must lie in [0, 1], got {self.flipRatio}')
        if not 0.0 < self.cflNumber <= 1.0:
            fail(f'cflNumber must lie in (0, 1], got {self.cflNumber}')
        if self.boundaryThickness < 0:
            fail(f'boundaryThickness must be >= 0, got {self.boundaryThickness}')

        mat = self.material
        if not mat.youngsModulus > 0.0:
            fail(f'youngsModulus must be positive, got {mat.youngsModulus}')
        if not 0.0 <= mat.poissonRatio < 0.5:
            fail(f'poissonRatio must lie in [0, 0.5), got {mat.poissonRatio}')
        if not mat.density > 0.0:
            fail(f'density must be positive, got {mat.density}')

    ######################################################################
    # -- JSON Loading -- #
    ######################################################################

    @classmethod
    def fromDict(cls, data: dict) -> SimulationConfig:
        '''
        Build a configuration from parsed JSON data.

        Reads the 'simulation', 'domain', 'solver' and 'material'
        sections; missing keys fall back to defaults.

        Raises:
        -------
        ConfigurationError : If a section has the wrong type or the
            resulting configuration does not validate
        '''
        if not isinstance(data, dict):
            raise ConfigurationError('Configuration root must be a JSON object')

        try:
            simSection = data.get('simulation', {})
            domainSection = data.get('domain', {})
            solverSection = data.get('solver', {})
            materialSection = data.get('material', {})

            dimensions = int(domainSection.get('dimensions', 2))
            domainMin = domainSection.get('min', [0.0] * dimensions)
            domainMax = domainSection.get('max', [1.0] * dimensions)

            # Gravity acts along -y in 2D and -z in 3D unless given as a vector
            gravity = solverSection.get('gravity', const.gravity)
            if np.isscalar(gravity):
                gravityVec = np.zeros(dimensions)
                gravityVec[-1] = -float(gravity)
            else:
                gravityVec = np.asarray(gravity, dtype=float)

            config = cls(
                startFrame=int(simSection.get('startFrame', 0)),
                endFrame=int(simSection.get('endFrame', 50)),
                frameRate=float(simSection.get('frameRate', 50.0)),
                maxTimeStep=float(simSection.get('maxTimeStep', 1.0e-3)),
                writeToFile=bool(simSection.get('writeToFile', False)),
                outputDir=str(simSection.get('outputDir', 'output')),
                domainMin=np.asarray(domainMin, dtype=float),
                domainMax=np.asarray(domainMax, dtype=float),
                cellCount=domainSection.get('cellCount', 32),
                gravity=gravityVec,
                interpolation=solverSection.get('interpolation', 'quadraticBSpline'),
                integration=solverSection.get('integration', 'explicit'),
                flipRatio=float(solverSection.get('flipRatio', const.flipRatio)),
                cflNumber=float(solverSection.get('cflNumber', const.cflNumber)),
                boundaryThickness=int(solverSection.get('boundaryThickness', const.defaultBoundaryThickness)),
                boundaryMode=solverSection.get('boundaryMode', 'slip'),
                material=MaterialConfig(
                    model=materialSection.get('model', 'neoHookean'),
                    youngsModulus=float(materialSection.get('youngsModulus', 1.0e4)),
                    poissonRatio=float(materialSection.get('poissonRatio', 0.3)),
                    density=float(materialSection.get('density', 1000.0)),
                ),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(f'Malformed configuration: {e}') from e

        config.validate()
        return config

    @classmethod
    def fromJson(cls, configPath: str) -> SimulationConfig:
        '''
        Load configuration from a JSON file.

        Parameters:
        -----------
        configPath : str
            Path to the JSON configuration file

        Returns:
        --------
        SimulationConfig : Loaded and validated configuration

        Raises:
        -------
        ConfigurationError : If the file is missing, unreadable, not
            valid JSON, or describes an invalid configuration
        '''
        try:
            with open(configPath, 'r') as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigurationError(f'Cannot read configuration file {configPath}: {e}') from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f'Malformed JSON in {configPath}: {e}') from e

        config = cls.fromDict(data)
        logger.info('Loaded configuration from %s', configPath)
        return config

    def toDict(self) -> dict:
        '''JSON-serializable representation (inverse of fromDict).'''
        return {
            'simulation': {
                'startFrame': self.startFrame,
                'endFrame': self.endFrame,
                'frameRate': self.frameRate,
                'maxTimeStep': self.maxTimeStep,
                'writeToFile': self.writeToFile,
                'outputDir': self.outputDir,
            },
            'domain': {
                'dimensions': self.dimensions,
                'min': self.domainMin.tolist(),
                'max': self.domainMax.tolist(),
                'cellCount': np.asarray(self.cellCount).tolist(),
            },
            'solver': {
                'gravity': self.gravity.tolist(),
                'interpolation': self.interpolation,
                'integration': self.integration,
                'flipRatio': self.flipRatio,
                'cflNumber': self.cflNumber,
                'boundaryThickness': self.boundaryThickness,
                'boundaryMode': self.boundaryMode,
            },
            'material': {
                'model': self.material.model,
                'youngsModulus': self.material.youngsModulus,
                'poissonRatio': self.material.poissonRatio,
                'density': self.material.density,
            },
        }


######################################################################
# -- Simulation State -- #
######################################################################

@dataclass
class SimulationState:
    '''
    Snapshot of the driver at a given time.

    Parameters:
    -----------
    time : float
        Elapsed simulated time [s]
    step : int
        Number of steps taken since configuration
    frame : int
        Current frame index
    dt : float
        Size of the most recent step [s]
    kineticEnergy : float
        Total particle kinetic energy [J]
    totalMass : float
        Total particle mass [kg]
    maxSpeed : float
        Maximum particle speed [m/s]
    '''

    time: float
    step: int
    frame: int
    dt: float
    kineticEnergy: float
    totalMass: float
    maxSpeed: float


######################################################################
# -- Driver Protocol -- #
######################################################################

class SimulationDriver(Protocol):
    '''Capability interface of a time-stepping simulation driver.'''

    def initConfiguration(self, config: SimulationConfig | str) -> None:
        '''Load parameters and set up the domain.'''
        ...

    def computeTimeStep(self) -> float:
        '''Stable step size bounded by the configured maximum.'''
        ...

    def advanceStep(self, dt: float) -> None:
        '''Advance the simulation by one step of size dt.'''
        ...

    def addPlugin(self, plugin: DriverPluginBase) -> None:
        '''Register a phase-boundary observer.'''
        ...

    def withRestartSupport(self) -> bool:
        '''Whether write()/read() are supported.'''
        ...

    def write(self, filePath: str) -> str:
        '''Serialize driver and particle state.'''
        ...

    def read(self, filePath: str) -> None:
        '''Restore driver and particle state.'''
        ...
