# -- Driver Checkpoints -- #

'''
Binary checkpoint format for restarting an MPM simulation.

A checkpoint is a compressed NumPy archive (.npz) holding the
driver's frame/time/step counters and the full particle state.
The archive is read with allow_pickle=False; the per-particle
material state dictionaries travel as a JSON string.

Fields:
    formatTag              'mpmSim.checkpoint'
    formatVersion          1
    currentFrame           int
    time                   float [s]
    stepCount              int
    dimensions             int
    positions              (N, dim)
    velocities             (N, dim)
    masses                 (N,)
    volumes                (N,)
    deformationGradients   (N, dim, dim)
    materialState          JSON list of N dicts

The tag and version are validated before anything else is read.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field

import numpy as np

from mpmSim import constants as const
from mpmSim.errors import CheckpointFormatError, ConfigurationError
from mpmSim.mpm.particles import ParticleArrays, SolidParticle

logger = logging.getLogger(__name__)

_ARRAY_FIELDS = ('positions', 'velocities', 'masses', 'volumes', 'deformationGradients')
_SCALAR_FIELDS = ('currentFrame', 'time', 'stepCount', 'dimensions')


@dataclass
class CheckpointData:
    '''
    In-memory contents of a checkpoint.

    Parameters:
    -----------
    currentFrame : int
        Frame index at which the checkpoint was taken
    time : float
        Simulated time [s]
    stepCount : int
        Steps taken since configuration
    arrays : ParticleArrays
        Particle positions, velocities, masses, volumes and F
    materialStates : list[dict]
        Per-particle constitutive state, one dict per particle
    '''

    currentFrame: int
    time: float
    stepCount: int
    arrays: ParticleArrays
    materialStates: list[dict] = field(default_factory=list)

    @property
    def dimensions(self) -> int:
        '''Number of spatial dimensions.'''
        return self.arrays.dimensions

    @property
    def particleCount(self) -> int:
        '''Number of particles in the checkpoint.'''
        return self.arrays.count

    def toParticles(self) -> list[SolidParticle]:
        '''Rebuild the particle records.'''
        a = self.arrays
        return [
            SolidParticle(
                position=a.positions[i],
                velocity=a.velocities[i],
                mass=float(a.masses[i]),
                volume=float(a.volumes[i]),
                deformationGradient=a.deformationGradients[i],
                materialState=dict(self.materialStates[i]) if self.materialStates else {},
            )
            for i in range(a.count)
        ]


def writeCheckpoint(filePath: str, data: CheckpointData) -> str:
    '''
    Write a checkpoint archive.

    Parameters:
    -----------
    filePath : str
        Target path; '.npz' is appended when missing
    data : CheckpointData
        Driver and particle state

    Returns:
    --------
    str : Path of the written file
    '''
    if not filePath.endswith('.npz'):
        filePath = filePath + '.npz'
    directory = os.path.dirname(filePath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    a = data.arrays
    materialStates = data.materialStates or [{} for _ in range(a.count)]

    try:
        np.savez_compressed(
            filePath,
            formatTag=np.array(const.checkpointFormatTag),
            formatVersion=np.array(const.checkpointFormatVersion),
            currentFrame=np.array(data.currentFrame),
            time=np.array(data.time),
            stepCount=np.array(data.stepCount),
            dimensions=np.array(a.dimensions),
            positions=a.positions,
            velocities=a.velocities,
            masses=a.masses,
            volumes=a.volumes,
            deformationGradients=a.deformationGradients,
            materialState=np.array(json.dumps(materialStates)),
        )
    except OSError as e:
        raise ConfigurationError(f'Cannot write checkpoint {filePath}: {e}') from e

    logger.info(
        'Wrote checkpoint %s (frame %d, %d particles)', filePath, data.currentFrame, a.count,
    )
    return filePath


def readCheckpoint(filePath: str) -> CheckpointData:
    '''
    Read and validate a checkpoint archive.

    Parameters:
    -----------
    filePath : str
        Path to a file produced by writeCheckpoint

    Returns:
    --------
    CheckpointData : Restored driver and particle state

    Raises:
    -------
    ConfigurationError : If the file is missing or unreadable
    CheckpointFormatError : If the tag, version or fields are wrong
    '''
    if not os.path.isfile(filePath):
        raise ConfigurationError(f'Checkpoint file not found: {filePath}')

    try:
        archive = np.load(filePath, allow_pickle=False)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f'Cannot read checkpoint {filePath}: {e}') from e

    # A bare .npy file loads as an ndarray, not an archive
    if not hasattr(archive, 'files'):
        raise CheckpointFormatError(f'{filePath} is not an mpmSim checkpoint archive')

    with archive:
        files = set(archive.files)
        if 'formatTag' not in files or 'formatVersion' not in files:
            raise CheckpointFormatError(f'{filePath} is not an mpmSim checkpoint (no format tag)')

        tag = str(archive['formatTag'])
        if tag != const.checkpointFormatTag:
            raise CheckpointFormatError(f'Unexpected checkpoint format tag {tag!r} in {filePath}')
        version = int(archive['formatVersion'])
        if version != const.checkpointFormatVersion:
            raise CheckpointFormatError(
                f'Unsupported checkpoint version {version} in {filePath} '
                f'(expected {const.checkpointFormatVersion})'
            )

        missing = [name for name in _SCALAR_FIELDS + _ARRAY_FIELDS + ('materialState',) if name not in files]
        if missing:
            raise CheckpointFormatError(f'Checkpoint {filePath} is missing fields: {", ".join(missing)}')

        dim = int(archive['dimensions'])
        arrays = ParticleArrays(
            positions=np.array(archive['positions'], dtype=float).reshape(-1, dim),
            velocities=np.array(archive['velocities'], dtype=float).reshape(-1, dim),
            masses=np.array(archive['masses'], dtype=float),
            volumes=np.array(archive['volumes'], dtype=float),
            deformationGradients=np.array(archive['deformationGradients'], dtype=float).reshape(-1, dim, dim),
        )

        try:
            materialStates = json.loads(str(archive['materialState']))
        except json.JSONDecodeError as e:
            raise CheckpointFormatError(f'Corrupt material state in {filePath}: {e}') from e

        data = CheckpointData(
            currentFrame=int(archive['currentFrame']),
            time=float(archive['time']),
            stepCount=int(archive['stepCount']),
            arrays=arrays,
            materialStates=materialStates,
        )

    n = data.particleCount
    counts = {
        arrays.velocities.shape[0], arrays.masses.shape[0],
        arrays.volumes.shape[0], arrays.deformationGradients.shape[0], len(materialStates),
    }
    if counts != {n}:
        raise CheckpointFormatError(f'Inconsistent particle counts in {filePath}')

    logger.info('Read checkpoint %s (frame %d, %d particles)', filePath, data.currentFrame, n)
    return data
