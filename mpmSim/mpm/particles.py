# -- MPM Solid Particles -- #

'''
Lagrangian material points carried by the MPM solid driver.

A SolidParticle is the per-point record exposed through the driver's
particle API. For the grid transfers the driver gathers the whole
collection into ParticleArrays (structure-of-arrays), updates the
arrays with vectorized NumPy operations and scatters the result back.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np

from mpmSim.errors import ShapeMismatchError, PreconditionError


######################################################################
# -- Particle Record -- #
######################################################################

@dataclass
class SolidParticle:
    '''
    Single material point of an elastic solid.

    Parameters:
    -----------
    position : np.ndarray
        Position [m], shape (dim,)
    velocity : np.ndarray
        Velocity [m/s], shape (dim,); zero when omitted
    mass : float
        Particle mass [kg]
    volume : float
        Reference (undeformed) volume [m^dim]
    deformationGradient : np.ndarray
        Deformation gradient F, shape (dim, dim); identity when omitted
    materialState : dict[str, float]
        Constitutive-specific scalars, opaque to grid and solver
    '''

    position: np.ndarray
    velocity: np.ndarray | None = None
    mass: float = 1.0
    volume: float = 1.0
    deformationGradient: np.ndarray | None = None
    materialState: dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.position = np.array(self.position, dtype=float)
        if self.position.ndim != 1:
            raise ShapeMismatchError(f'Particle position must be a vector, got shape {self.position.shape}')
        dim = self.position.shape[0]

        if self.velocity is None:
            self.velocity = np.zeros(dim)
        else:
            self.velocity = np.array(self.velocity, dtype=float)
        if self.deformationGradient is None:
            self.deformationGradient = np.eye(dim)
        else:
            self.deformationGradient = np.array(self.deformationGradient, dtype=float)

        if self.velocity.shape != (dim,):
            raise ShapeMismatchError(f'Particle velocity must have shape ({dim},), got {self.velocity.shape}')
        if self.deformationGradient.shape != (dim, dim):
            raise ShapeMismatchError(
                f'Deformation gradient must have shape ({dim}, {dim}), got {self.deformationGradient.shape}'
            )
        if self.mass <= 0.0 or self.volume <= 0.0:
            raise PreconditionError(f'Particle mass and volume must be positive, got {self.mass}, {self.volume}')
        self.mass = float(self.mass)
        self.volume = float(self.volume)

    @property
    def dimensions(self) -> int:
        '''Number of spatial dimensions.'''
        return self.position.shape[0]

    def copy(self) -> SolidParticle:
        '''Deep copy (arrays and material state are not shared).'''
        return SolidParticle(
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            mass=self.mass,
            volume=self.volume,
            deformationGradient=self.deformationGradient.copy(),
            materialState=copy.deepcopy(self.materialState),
        )

    def kineticEnergy(self) -> float:
        '''Kinetic energy 0.5 * m * |v|^2 [J].'''
        return 0.5 * self.mass * float(np.dot(self.velocity, self.velocity))

    def currentVolume(self) -> float:
        '''Deformed volume J * V0 [m^dim].'''
        return float(np.linalg.det(self.deformationGradient)) * self.volume


######################################################################
# -- Structure-of-Arrays Gather -- #
######################################################################

@dataclass
class ParticleArrays:
    '''
    Dense NumPy view of a particle collection used by the transfers.

    Parameters:
    -----------
    positions : np.ndarray
        Shape (N, dim)
    velocities : np.ndarray
        Shape (N, dim)
    masses : np.ndarray
        Shape (N,)
    volumes : np.ndarray
        Reference volumes, shape (N,)
    deformationGradients : np.ndarray
        Shape (N, dim, dim)
    '''

    positions: np.ndarray
    velocities: np.ndarray
    masses: np.ndarray
    volumes: np.ndarray
    deformationGradients: np.ndarray

    @classmethod
    def fromParticles(cls, particles: Iterable[SolidParticle], dimensions: int) -> ParticleArrays:
        '''
        Gather particle records into contiguous arrays.

        Parameters:
        -----------
        particles : Iterable[SolidParticle]
            Particle collection (may be empty)
        dimensions : int
            Spatial dimensions, used for the shape of empty arrays
        '''
        particleList = list(particles)
        if not particleList:
            return cls.empty(dimensions)

        return cls(
            positions=np.array([p.position for p in particleList]),
            velocities=np.array([p.velocity for p in particleList]),
            masses=np.array([p.mass for p in particleList]),
            volumes=np.array([p.volume for p in particleList]),
            deformationGradients=np.array([p.deformationGradient for p in particleList]),
        )

    @classmethod
    def empty(cls, dimensions: int) -> ParticleArrays:
        '''Arrays for zero particles.'''
        return cls(
            positions=np.zeros((0, dimensions)),
            velocities=np.zeros((0, dimensions)),
            masses=np.zeros(0),
            volumes=np.zeros(0),
            deformationGradients=np.zeros((0, dimensions, dimensions)),
        )

    @property
    def count(self) -> int:
        '''Number of particles.'''
        return self.positions.shape[0]

    @property
    def dimensions(self) -> int:
        '''Number of spatial dimensions.'''
        return self.positions.shape[1]

    def kineticEnergy(self) -> float:
        '''Total kinetic energy [J].'''
        speedsSq = np.sum(self.velocities ** 2, axis=1)
        return float(0.5 * np.sum(self.masses * speedsSq))

    def speeds(self) -> np.ndarray:
        '''Particle speeds, shape (N,).'''
        return np.linalg.norm(self.velocities, axis=1)

    def scatterTo(self, particles: Sequence[SolidParticle]) -> None:
        '''
        Write positions, velocities and deformation gradients back
        into the particle records, in order.

        Mass, volume and material state are not touched: the
        transfers never change them.
        '''
        if len(particles) != self.count:
            raise ShapeMismatchError(
                f'Cannot scatter {self.count} particles into a collection of {len(particles)}'
            )
        for i, particle in enumerate(particles):
            particle.position = self.positions[i].copy()
            particle.velocity = self.velocities[i].copy()
            particle.deformationGradient = self.deformationGradients[i].copy()


######################################################################
# -- Particle Seeding -- #
######################################################################

def createUniformParticles(
    regionMin: np.ndarray,
    regionMax: np.ndarray,
    spacing: float,
    density: float,
    velocity: np.ndarray | None = None,
) -> list[SolidParticle]:
    '''
    Fill an axis-aligned box with particles on a regular lattice.

    Particles sit at cell centers of a lattice with the given spacing
    (half-spacing offset from regionMin), each carrying the volume
    spacing^dim and mass density * volume.

    Parameters:
    -----------
    regionMin : np.ndarray
        Lower corner of the filled region [m]
    regionMax : np.ndarray
        Upper corner of the filled region [m]
    spacing : float
        Lattice spacing [m]
    density : float
        Material density [kg/m^3]
    velocity : np.ndarray | None
        Initial velocity shared by every particle (zero when omitted)

    Returns:
    --------
    list[SolidParticle] : Seeded particles in row-major lattice order
    '''
    regionMin = np.asarray(regionMin, dtype=float)
    regionMax = np.asarray(regionMax, dtype=float)
    if regionMin.shape != regionMax.shape or regionMin.ndim != 1:
        raise ShapeMismatchError('Region corners must be vectors of equal length')
    if spacing <= 0.0 or density <= 0.0:
        raise PreconditionError(f'Spacing and density must be positive, got {spacing}, {density}')

    dim = regionMin.shape[0]
    counts = np.floor((regionMax - regionMin) / spacing + 1e-9).astype(int)
    if np.any(counts <= 0):
        return []

    axes = [regionMin[d] + (np.arange(counts[d]) + 0.5) * spacing for d in range(dim)]
    mesh = np.meshgrid(*axes, indexing='ij')
    positions = np.stack([m.ravel() for m in mesh], axis=1)

    volume = spacing ** dim
    mass = density * volume
    initialVelocity = np.zeros(dim) if velocity is None else np.asarray(velocity, dtype=float)

    return [
        SolidParticle(position=pos, velocity=initialVelocity.copy(), mass=mass, volume=volume)
        for pos in positions
    ]
