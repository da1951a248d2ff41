# -- Simulation Frame Exporter -- #

'''
Exports MPM simulation frames as JSON for visualization.

Collects read-only particle snapshots during a run and writes them
to a compact JSON file consumed by the plotly figures in
mpmSim.visualization (or any external viewer).

Each frame stores particle positions, speeds and the volume ratio
J = det(F), plus the kinetic/elastic energy history and run metadata.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING

import numpy as np

from mpmSim.errors import ConfigurationError
from mpmSim.mpm.protocols import SimulationConfig, SimulationState

if TYPE_CHECKING:
    from mpmSim.mpm.mpmSolid import MpmSolidDriver

logger = logging.getLogger(__name__)


class FrameExporter:
    '''
    Collects and exports simulation frame data as JSON.

    Usage:
        exporter = FrameExporter()
        # During the run (or via FrameRecorderPlugin):
        exporter.addFrame(state, driver)
        # After the run:
        exporter.export(config, outputDir='output')

    Output JSON format:
    {
        "meta": { "type": "mpmSim", "dimensions": 2, "created": "...", ... },
        "config": { "domainMin": [...], "cellCount": ..., ... },
        "frames": [
            {
                "frame": 0,
                "time": 0.0,
                "positions": [[x0, y0], [x1, y1], ...],
                "speeds": [v0, v1, ...],
                "volumeRatios": [J0, J1, ...]
            },
            ...
        ],
        "energy": {
            "times": [...],
            "kinetic": [...],
            "elastic": [...],
            "total": [...]
        }
    }
    '''

    def __init__(self) -> None:
        self._frames: list[dict] = []
        self._energyHistory: dict[str, list[float]] = {
            'times': [],
            'kinetic': [],
            'elastic': [],
            'total': [],
        }

    @property
    def frameCount(self) -> int:
        '''Number of collected frames.'''
        return len(self._frames)

    @property
    def frames(self) -> list[dict]:
        '''Collected frames (not copied).'''
        return self._frames

    def addFrame(self, state: SimulationState, driver: MpmSolidDriver) -> None:
        '''
        Record a simulation frame.

        Parameters:
        -----------
        state : SimulationState
            Current simulation state diagnostics
        driver : MpmSolidDriver
            Driver whose particles are snapshotted (read only)
        '''
        arrays = driver.particleArrays()
        speeds = arrays.speeds()
        volumeRatios = (
            np.linalg.det(arrays.deformationGradients) if arrays.count else np.zeros(0)
        )
        elastic = driver.elasticEnergy()

        frame = {
            'frame': state.frame,
            'time': round(state.time, 6),
            'positions': np.round(arrays.positions, 6).tolist(),
            'speeds': np.round(speeds, 6).tolist(),
            'volumeRatios': np.round(volumeRatios, 6).tolist(),
        }
        self._frames.append(frame)

        self._energyHistory['times'].append(round(state.time, 6))
        self._energyHistory['kinetic'].append(round(state.kineticEnergy, 9))
        self._energyHistory['elastic'].append(round(elastic, 9))
        self._energyHistory['total'].append(round(state.kineticEnergy + elastic, 9))

    def export(
        self,
        config: SimulationConfig,
        outputDir: str = 'output',
        scenarioName: str = 'elasticBlock',
    ) -> str:
        '''
        Write all collected frames to a JSON file.

        Parameters:
        -----------
        config : SimulationConfig
            Simulation configuration for metadata
        outputDir : str
            Output directory path
        scenarioName : str
            Scenario name for the filename

        Returns:
        --------
        str : Path to the exported JSON file
        '''
        os.makedirs(outputDir, exist_ok=True)

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = f'mpmSim_{scenarioName}_{timestamp}.json'
        filepath = os.path.join(outputDir, filename)

        output = {
            'meta': {
                'type': 'mpmSim',
                'scenario': scenarioName,
                'dimensions': config.dimensions,
                'nFrames': len(self._frames),
                'nParticles': len(self._frames[0]['positions']) if self._frames else 0,
                'created': datetime.now().isoformat(),
            },
            'config': config.toDict(),
            'frames': self._frames,
            'energy': self._energyHistory,
        }

        with open(filepath, 'w') as f:
            json.dump(output, f, indent=None, separators=(',', ':'))

        logger.info('Exported %d frames to %s', len(self._frames), filepath)
        return filepath


def loadFrames(filePath: str) -> dict:
    '''
    Load an exported frame file.

    Parameters:
    -----------
    filePath : str
        Path written by FrameExporter.export

    Returns:
    --------
    dict : Parsed JSON with 'meta', 'config', 'frames' and 'energy'

    Raises:
    -------
    ConfigurationError : If the file is missing, not JSON, or not an
        mpmSim frame export
    '''
    try:
        with open(filePath, 'r') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f'Cannot read frame file {filePath}: {e}') from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f'Malformed frame file {filePath}: {e}') from e

    if not isinstance(data, dict) or data.get('meta', {}).get('type') != 'mpmSim':
        raise ConfigurationError(f'{filePath} is not an mpmSim frame export')
    return data
