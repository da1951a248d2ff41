# -- MPM Solid Driver -- #

'''
Material Point Method driver for elastic solids.

Advances a collection of Lagrangian particles against a background
UniformGrid. Each step rasterizes particle mass, momentum and
internal force onto the grid, updates grid velocities (explicitly,
or implicitly through an assembled sparse system), applies the wall
conditions and transfers the result back to the particles.

Algorithm per step:
    1. Zero the transient grid fields
    2. P2G: scatter mass, momentum and internal force (np.add.at)
    3. Grid update: explicit, or implicit (M + dt^2 K) v = M v* + dt f
    4. Wall conditions on the boundary node layers (slip or sticky)
    5. G2P: FLIP/PIC velocity blend and velocity gradient
    6. Update F <- (I + dt grad v) F and advect positions
    7. Clamp positions into the kernel's valid region

Lifecycle:
    UNCONFIGURED -> CONFIGURED -> STEPPING -> FINISHED
A checkpoint read resumes into STEPPING (FINISHED at endFrame).

The constitutive model and the interpolation kernel are strategy
objects; both may be injected, otherwise they are built from the
configuration.

References:
-----------
Sulsky, Chen & Schreyer (1994) -- A particle method for
    history-dependent materials
Jiang et al. (2016) -- The material point method for simulating
    continuum materials (SIGGRAPH course notes)

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import logging
import math
import os
from enum import Enum
from typing import Callable, Iterable

import numpy as np

from mpmSim import constants as const
from mpmSim.core.dynamicArray import DynamicArray
from mpmSim.errors import (
    CheckpointFormatError,
    ConfigurationError,
    DriverStateError,
    PreconditionError,
    ShapeMismatchError,
)
from mpmSim.geometry.uniformGrid import UniformGrid
from mpmSim.mpm.checkpoint import CheckpointData, readCheckpoint, writeCheckpoint
from mpmSim.mpm.constitutive import ConstitutiveModel, createConstitutiveModel
from mpmSim.mpm.implicitSolver import assembleGridSystem, solveGridSystem
from mpmSim.mpm.interpolation import InterpolationKernel, createInterpolationKernel, evaluateStencil
from mpmSim.mpm.particles import ParticleArrays, SolidParticle
from mpmSim.mpm.plugins import DriverPluginBase, PluginRegistry
from mpmSim.mpm.protocols import SimulationConfig, SimulationState

logger = logging.getLogger(__name__)


class DriverStage(Enum):
    '''Lifecycle stage of a simulation driver.'''

    UNCONFIGURED = 'unconfigured'
    CONFIGURED = 'configured'
    STEPPING = 'stepping'
    FINISHED = 'finished'


class MpmSolidDriver:
    '''
    Explicit/implicit MPM driver for hyperelastic solids.

    Parameters:
    -----------
    config : SimulationConfig | str | None
        Configuration (or path to a JSON file) applied immediately;
        when omitted the driver starts UNCONFIGURED
    constitutiveModel : ConstitutiveModel | None
        Stress law; built from config.material when omitted
    interpolationKernel : InterpolationKernel | None
        Transfer kernel; built from config.interpolation when omitted
    '''

    def __init__(
        self,
        config: SimulationConfig | str | None = None,
        constitutiveModel: ConstitutiveModel | None = None,
        interpolationKernel: InterpolationKernel | None = None,
    ) -> None:
        self._stage = DriverStage.UNCONFIGURED
        self._plugins = PluginRegistry(self)
        self._particles: DynamicArray[SolidParticle] = DynamicArray()

        self._modelOverride = constitutiveModel
        self._kernelOverride = interpolationKernel

        self._config: SimulationConfig | None = None
        self._grid: UniformGrid | None = None
        self._model: ConstitutiveModel | None = None
        self._kernel: InterpolationKernel | None = None
        self._gridUpdate: Callable | None = None
        self._boundaryMask: np.ndarray | None = None

        self._time: float = 0.0
        self._step: int = 0
        self._frame: int = 0
        self._dt: float = 0.0

        self._gridMass: np.ndarray | None = None
        self._gridVelocity: np.ndarray | None = None

        if config is not None:
            self.initConfiguration(config)

    ######################################################################
    # -- Configuration -- #
    ######################################################################

    def initConfiguration(self, config: SimulationConfig | str) -> None:
        '''
        Load parameters, build the grid and strategies, reset the clock.

        Parameters:
        -----------
        config : SimulationConfig | str
            Configuration object or path to a JSON configuration file

        Raises:
        -------
        ConfigurationError : If the configuration is invalid or unreadable
        DriverStateError : If called from inside a plugin notification
        '''
        if self._plugins.isNotifying:
            raise DriverStateError('Cannot reconfigure the driver during a plugin notification')

        if isinstance(config, str):
            config = SimulationConfig.fromJson(config)
        else:
            config.validate()

        grid = config.createGrid()
        model = self._modelOverride or createConstitutiveModel(config.material)
        kernel = self._kernelOverride or createInterpolationKernel(config.interpolation)

        # The kernel needs a non-empty valid region [margin, cellCount - margin)
        if np.any(grid.cellNum() <= 2 * kernel.margin):
            raise ConfigurationError(
                f'Grid of {grid.cellNum().tolist()} cells is too small for the '
                f'{kernel.name} kernel (needs more than {2 * kernel.margin:g} per axis)'
            )

        self._config = config
        self._grid = grid
        self._model = model
        self._kernel = kernel
        self._gridUpdate = {
            'explicit': self._updateGridExplicit,
            'implicit': self._updateGridImplicit,
        }[config.integration]
        self._boundaryMask = grid.boundaryNodeMask(config.boundaryThickness)

        if len(self._particles) > 0 and self._particles[0].dimensions != config.dimensions:
            logger.warning('Dropping %d particle(s) of a different dimension', len(self._particles))
            self._particles.clear()

        self._frame = config.startFrame
        self._time = config.startTime
        self._step = 0
        self._dt = 0.0
        self._gridMass = None
        self._gridVelocity = None
        self._stage = DriverStage.CONFIGURED

        logger.info(
            'Configured %dD MPM driver: grid %s cells, dx=%s, %s kernel, %s model, %s integration',
            config.dimensions, grid.cellNum().tolist(), np.round(grid.dX(), 6).tolist(),
            kernel.name, model.name, config.integration,
        )

    def _requireStage(self, *allowed: DriverStage, action: str) -> None:
        if self._stage not in allowed:
            names = ', '.join(s.name for s in allowed)
            raise DriverStateError(f'Cannot {action} in stage {self._stage.name} (requires {names})')

    @property
    def stage(self) -> DriverStage:
        '''Current lifecycle stage.'''
        return self._stage

    @property
    def config(self) -> SimulationConfig | None:
        '''Active configuration.'''
        return self._config

    @property
    def grid(self) -> UniformGrid | None:
        '''Background grid.'''
        return self._grid

    @property
    def constitutiveModel(self) -> ConstitutiveModel | None:
        '''Active stress law.'''
        return self._model

    @property
    def interpolationKernel(self) -> InterpolationKernel | None:
        '''Active transfer kernel.'''
        return self._kernel

    @property
    def currentFrame(self) -> int:
        '''Index of the last completed frame.'''
        return self._frame

    @property
    def time(self) -> float:
        '''Elapsed simulated time [s].'''
        return self._time

    @property
    def stepCount(self) -> int:
        '''Steps taken since configuration.'''
        return self._step

    ######################################################################
    # -- Particle Collection -- #
    ######################################################################

    def _checkMutable(self, action: str) -> None:
        self._requireStage(DriverStage.CONFIGURED, DriverStage.STEPPING, action=action)
        if self._plugins.isNotifying:
            raise DriverStateError(f'Cannot {action} during a plugin notification')

    def _checkDimensions(self, particle: SolidParticle) -> None:
        if particle.dimensions != self._config.dimensions:
            raise ShapeMismatchError(
                f'Particle is {particle.dimensions}D, simulation is {self._config.dimensions}D'
            )

    def addParticle(self, particle: SolidParticle) -> int:
        '''
        Append a copy of a particle.

        Returns:
        --------
        int : Index of the new particle
        '''
        self._checkMutable('add particles')
        self._checkDimensions(particle)
        self._particles.append(particle.copy())
        return len(self._particles) - 1

    def setParticles(self, particles: Iterable[SolidParticle]) -> None:
        '''Replace the whole collection with copies of the given particles.'''
        self._checkMutable('set particles')
        copies = [p.copy() for p in particles]
        for p in copies:
            self._checkDimensions(p)
        self._particles.clear()
        self._particles.reserve(len(copies))
        self._particles.extend(copies)

    def removeParticle(self, index: int) -> SolidParticle:
        '''
        Remove a particle; indices above it shift down by one.

        Raises:
        -------
        InvalidIndexError : If index is outside [0, particleNum())
        '''
        self._checkMutable('remove particles')
        return self._particles.remove(index)

    def particle(self, index: int) -> SolidParticle:
        '''Mutable particle record at index.'''
        self._requireStage(DriverStage.CONFIGURED, DriverStage.STEPPING, DriverStage.FINISHED, action='access particles')
        return self._particles[index]

    def particleView(self, index: int) -> SolidParticle:
        '''Read-only copy of the particle at index.'''
        self._requireStage(DriverStage.CONFIGURED, DriverStage.STEPPING, DriverStage.FINISHED, action='access particles')
        return self._particles[index].copy()

    def particleNum(self) -> int:
        '''Number of particles.'''
        return len(self._particles)

    @property
    def particles(self) -> list[SolidParticle]:
        '''Snapshot (copies) of the particle collection.'''
        return [p.copy() for p in self._particles]

    def particleArrays(self) -> ParticleArrays:
        '''Gathered particle arrays (a copy; writes do not reach the driver).'''
        dim = self._config.dimensions if self._config is not None else 2
        return ParticleArrays.fromParticles(self._particles, dim)

    ######################################################################
    # -- Plugins -- #
    ######################################################################

    def addPlugin(self, plugin: DriverPluginBase) -> None:
        '''Register an observer; the caller keeps ownership.'''
        self._plugins.register(plugin)

    def removePlugin(self, plugin: DriverPluginBase) -> None:
        '''Unregister an observer.'''
        self._plugins.unregister(plugin)

    @property
    def plugins(self) -> list[DriverPluginBase]:
        '''Registered plugins in notification order.'''
        return list(self._plugins)

    ######################################################################
    # -- Time Step Selection -- #
    ######################################################################

    def computeTimeStep(self) -> float:
        '''
        Stable step size.

        dt = min(maxTimeStep, cfl * minEdgeLength / (maxSpeed + waveSpeed))

        Decreases with smaller cells and faster particles.
        '''
        self._requireStage(DriverStage.CONFIGURED, DriverStage.STEPPING, action='compute a time step')
        config = self._config

        maxSpeed = 0.0
        for p in self._particles:
            maxSpeed = max(maxSpeed, float(np.linalg.norm(p.velocity)))

        signalSpeed = maxSpeed + self._model.waveSpeed(config.material.density)
        if signalSpeed <= 0.0:
            return config.maxTimeStep
        return min(config.maxTimeStep, config.cflNumber * self._grid.minEdgeLength() / signalSpeed)

    ######################################################################
    # -- Main Step -- #
    ######################################################################

    def advanceStep(self, dt: float) -> None:
        '''
        Advance every particle by one step of size dt.

        Particles are updated in place; none are created or destroyed.

        Parameters:
        -----------
        dt : float
            Step size [s], positive
        '''
        self._requireStage(DriverStage.CONFIGURED, DriverStage.STEPPING, action='advance a step')
        if self._plugins.isNotifying:
            raise DriverStateError('Cannot advance a step during a plugin notification')
        if not dt > 0.0 or not math.isfinite(dt):
            raise PreconditionError(f'Time step must be positive and finite, got {dt}')

        self._stage = DriverStage.STEPPING
        self._plugins.notify('onStepStart', self._time, dt)

        # 1. Zero transient grid fields
        totalNodes = self._grid.totalNodeCount
        dim = self._grid.dimensions
        self._gridMass = np.zeros(totalNodes)
        self._gridVelocity = np.zeros((totalNodes, dim))

        if len(self._particles) > 0:
            arrays = ParticleArrays.fromParticles(self._particles, dim)
            self._clampPositions(arrays, warn=True)
            self._transfer(arrays, dt)
            arrays.scatterTo(self._particles)

        self._time += dt
        self._step += 1
        self._dt = dt

        logger.debug('Step %d done: t=%.6f s, dt=%.3e s', self._step, self._time, dt)
        self._plugins.notify('onStepEnd', self._time, dt)

    def _transfer(self, arrays: ParticleArrays, dt: float) -> None:
        grid = self._grid
        dim = grid.dimensions
        dx = grid.dX()
        nodeNum = tuple(int(n) for n in grid.nodeNum())
        totalNodes = grid.totalNodeCount

        stencil = evaluateStencil(self._kernel, grid.gridCoordinates(arrays.positions), dx)
        flat = np.ravel_multi_index(
            tuple(stencil.nodeIndices[..., d] for d in range(dim)), nodeNum,
        )
        flatIdx = flat.ravel()
        w = stencil.weights
        gradW = stencil.weightGradients

        # 2. P2G: mass, momentum and internal force f_i = -sum_p V0_p P_p F_p^T grad w_ip
        F = arrays.deformationGradients
        P = self._model.firstPiolaStress(F)
        stressTerm = -arrays.volumes[:, np.newaxis, np.newaxis] * (P @ np.swapaxes(F, 1, 2))

        massW = arrays.masses[:, np.newaxis] * w
        momentum = massW[:, :, np.newaxis] * arrays.velocities[:, np.newaxis, :]
        force = np.einsum('pij,psj->psi', stressTerm, gradW)

        gridMass = np.zeros(totalNodes)
        gridMomentum = np.zeros((totalNodes, dim))
        gridForce = np.zeros((totalNodes, dim))
        np.add.at(gridMass, flatIdx, massW.ravel())
        np.add.at(gridMomentum, flatIdx, momentum.reshape(-1, dim))
        np.add.at(gridForce, flatIdx, force.reshape(-1, dim))

        active = gridMass > const.gridMassEpsilon
        vOld = np.zeros((totalNodes, dim))
        vOld[active] = gridMomentum[active] / gridMass[active, np.newaxis]

        # 3. Grid velocity update on active nodes
        vNew = np.zeros((totalNodes, dim))
        currentVolumes = arrays.volumes * np.abs(np.linalg.det(F))
        vNew[active] = self._gridUpdate(
            active, gridMass, vOld, gridForce, dt,
            flat=flat, gradW=gradW, volumes=currentVolumes,
        )

        # 4. Wall conditions
        self._applyBoundaryConditions(vNew)

        self._gridMass = gridMass
        self._gridVelocity = vNew

        # 5. G2P with FLIP/PIC blend
        gvNew = vNew[flat]
        gvOld = vOld[flat]
        vPic = np.einsum('ps,psd->pd', w, gvNew)
        vFlip = arrays.velocities + np.einsum('ps,psd->pd', w, gvNew - gvOld)
        flipRatio = self._config.flipRatio
        arrays.velocities = flipRatio * vFlip + (1.0 - flipRatio) * vPic

        # 6. Deformation gradient and advection
        gradV = np.einsum('psi,psj->pij', gvNew, gradW)
        identity = np.eye(dim)[np.newaxis, :, :]
        arrays.deformationGradients = (identity + dt * gradV) @ F
        arrays.positions = arrays.positions + dt * vPic

        # 7. Keep every stencil inside the grid
        self._clampPositions(arrays)

    def _updateGridExplicit(
        self, active, gridMass, vOld, gridForce, dt, **_stencil,
    ) -> np.ndarray:
        '''Symplectic Euler on the grid: v = v* + dt (f / m + g).'''
        mass = gridMass[active, np.newaxis]
        return vOld[active] + dt * (gridForce[active] / mass + self._config.gravity)

    def _updateGridImplicit(
        self, active, gridMass, vOld, gridForce, dt, flat, gradW, volumes,
    ) -> np.ndarray:
        '''Linearized backward Euler: (M + dt^2 K) v = M v* + dt (f + M g).'''
        activeNodes = np.flatnonzero(active)
        mass = gridMass[active]
        system = assembleGridSystem(
            activeNodes, flat, gradW, volumes,
            self._model.stiffnessModulus, mass, dt,
        )
        rhs = mass[:, np.newaxis] * vOld[active] + dt * (
            gridForce[active] + mass[:, np.newaxis] * self._config.gravity
        )
        return solveGridSystem(system, rhs)

    def _applyBoundaryConditions(self, velocity: np.ndarray) -> None:
        mask = self._boundaryMask
        if self._config.boundaryMode == 'sticky':
            velocity[np.any(mask != 0, axis=1)] = 0.0
            return

        # Slip: remove only the velocity component pointing into the wall
        intoLower = (mask == -1) & (velocity < 0.0)
        intoUpper = (mask == 1) & (velocity > 0.0)
        velocity[intoLower | intoUpper] = 0.0

    def _clampPositions(self, arrays: ParticleArrays, warn: bool = False) -> None:
        grid = self._grid
        dx = grid.dX()
        margin = self._kernel.margin
        lower = grid.minCorner() + margin * dx
        upper = grid.minCorner() + (grid.cellNum() - margin - const.positionClampEpsilon) * dx

        clamped = np.clip(arrays.positions, lower, upper)
        if warn and not np.array_equal(clamped, arrays.positions):
            moved = int(np.sum(np.any(clamped != arrays.positions, axis=1)))
            logger.warning('Moved %d particle(s) into the valid interpolation region', moved)
        arrays.positions = clamped

    ######################################################################
    # -- Frame Loop -- #
    ######################################################################

    def advanceFrame(self) -> SimulationState:
        '''
        Step until the next frame boundary.

        The last step is shortened to land exactly on the boundary.
        Writes a checkpoint when writeToFile is set.

        Returns:
        --------
        SimulationState : State at the frame boundary
        '''
        self._requireStage(DriverStage.CONFIGURED, DriverStage.STEPPING, action='advance a frame')
        config = self._config
        if self._frame >= config.endFrame:
            raise DriverStateError(f'Already at the end frame {config.endFrame}')

        self._stage = DriverStage.STEPPING
        targetFrame = self._frame + 1
        frameEndTime = targetFrame * config.frameDuration
        self._plugins.notify('onFrameStart', targetFrame)

        while frameEndTime - self._time > 1e-12 * max(1.0, frameEndTime):
            dt = min(self.computeTimeStep(), frameEndTime - self._time)
            self.advanceStep(dt)

        self._time = frameEndTime
        self._frame = targetFrame

        if config.writeToFile:
            self.write(self.checkpointPath(targetFrame))

        if self._frame >= config.endFrame:
            self._stage = DriverStage.FINISHED
            logger.info('Reached end frame %d after %d steps', self._frame, self._step)

        self._plugins.notify('onFrameEnd', targetFrame)
        return self.currentState

    def run(self) -> SimulationState:
        '''Advance frames until endFrame; the driver ends FINISHED.'''
        self._requireStage(DriverStage.CONFIGURED, DriverStage.STEPPING, action='run')
        if self._frame >= self._config.endFrame:
            self._stage = DriverStage.FINISHED
        while self._stage is not DriverStage.FINISHED:
            self.advanceFrame()
        return self.currentState

    ######################################################################
    # -- Restart -- #
    ######################################################################

    def withRestartSupport(self) -> bool:
        '''This driver supports write() and read().'''
        return True

    def checkpointPath(self, frame: int) -> str:
        '''Default checkpoint location for a frame.'''
        return os.path.join(self._config.outputDir, f'checkpoint_{frame:05d}.npz')

    def write(self, filePath: str) -> str:
        '''
        Write driver time state and all particles to a checkpoint.

        Returns:
        --------
        str : Path of the written file
        '''
        self._requireStage(
            DriverStage.CONFIGURED, DriverStage.STEPPING, DriverStage.FINISHED, action='write a checkpoint',
        )
        data = CheckpointData(
            currentFrame=self._frame,
            time=self._time,
            stepCount=self._step,
            arrays=self.particleArrays(),
            materialStates=[dict(p.materialState) for p in self._particles],
        )
        path = writeCheckpoint(filePath, data)
        self._plugins.notify('onWrite', path)
        return path

    def read(self, filePath: str) -> None:
        '''
        Restore driver time state and particles from a checkpoint.

        The driver must be configured with a matching dimension.
        Resumes into STEPPING, or FINISHED when the checkpoint is at
        the end frame.

        Raises:
        -------
        ConfigurationError : If the file is missing or unreadable
        CheckpointFormatError : If the format tag/version is wrong or
            the dimension does not match the configuration
        '''
        self._requireStage(
            DriverStage.CONFIGURED, DriverStage.STEPPING, DriverStage.FINISHED, action='read a checkpoint',
        )
        if self._plugins.isNotifying:
            raise DriverStateError('Cannot read a checkpoint during a plugin notification')

        data = readCheckpoint(filePath)
        if data.dimensions != self._config.dimensions:
            raise CheckpointFormatError(
                f'Checkpoint is {data.dimensions}D, configuration is {self._config.dimensions}D'
            )

        self._particles.clear()
        self._particles.extend(data.toParticles())
        self._frame = data.currentFrame
        self._time = data.time
        self._step = data.stepCount
        self._gridMass = None
        self._gridVelocity = None
        self._stage = (
            DriverStage.FINISHED if self._frame >= self._config.endFrame else DriverStage.STEPPING
        )
        self._plugins.notify('onRead', filePath)

    ######################################################################
    # -- Diagnostics -- #
    ######################################################################

    @property
    def currentState(self) -> SimulationState:
        '''Snapshot of time, counters and particle energy.'''
        dim = self._config.dimensions if self._config is not None else 2
        arrays = ParticleArrays.fromParticles(self._particles, dim)
        speeds = arrays.speeds()
        return SimulationState(
            time=self._time,
            step=self._step,
            frame=self._frame,
            dt=self._dt,
            kineticEnergy=arrays.kineticEnergy(),
            totalMass=float(np.sum(arrays.masses)),
            maxSpeed=float(np.max(speeds)) if speeds.size else 0.0,
        )

    def elasticEnergy(self) -> float:
        '''Total strain energy sum_p V0_p Psi(F_p) [J].'''
        self._requireStage(
            DriverStage.CONFIGURED, DriverStage.STEPPING, DriverStage.FINISHED, action='compute energy',
        )
        if len(self._particles) == 0:
            return 0.0
        arrays = self.particleArrays()
        return float(np.sum(arrays.volumes * self._model.energyDensity(arrays.deformationGradients)))

    def _gridView(self, field: np.ndarray | None, trailing: tuple) -> np.ndarray | None:
        if field is None:
            return None
        view = field.reshape(tuple(int(n) for n in self._grid.nodeNum()) + trailing).view()
        view.setflags(write=False)
        return view

    @property
    def gridMass(self) -> np.ndarray | None:
        '''Node masses of the last step, shape nodeNum (read-only).'''
        return self._gridView(self._gridMass, ())

    @property
    def gridVelocity(self) -> np.ndarray | None:
        '''Node velocities of the last step, shape nodeNum + (dim,) (read-only).'''
        if self._grid is None:
            return None
        return self._gridView(self._gridVelocity, (self._grid.dimensions,))

    def __repr__(self) -> str:
        return (
            f'MpmSolidDriver(stage={self._stage.name}, particles={len(self._particles)}, '
            f'frame={self._frame}, t={self._time:.4f})'
        )
