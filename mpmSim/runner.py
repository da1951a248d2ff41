# -- MPM Simulation Runner -- #

'''
Command-line entry point for running MPM solid simulations.

Loads a scenario preset or JSON configuration, runs the MPM solid
driver frame by frame, displays progress, and optionally exports
frame data for the plotly figures.

Usage:
    mpmsim                                          # Default small 2D block drop
    mpmsim --preset standard2D                      # Standard 2D block drop
    mpmsim --config configs/elastic_block_2d.json
    mpmsim --resume output/checkpoint_00005.npz     # Continue from a checkpoint
    mpmsim --no-export                              # Skip frame export

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import argparse
import json
import logging
import time as timeModule

import numpy as np

from mpmSim.errors import ConfigurationError
from mpmSim.export.frameExporter import FrameExporter
from mpmSim.logConfig import setupLogging
from mpmSim.mpm.mpmSolid import DriverStage, MpmSolidDriver
from mpmSim.mpm.particles import SolidParticle, createUniformParticles
from mpmSim.mpm.plugins import EnergyMonitorPlugin, FrameRecorderPlugin
from mpmSim.mpm.protocols import SimulationConfig
from mpmSim.scenarios.elasticBlock import ElasticBlockConfig, createElasticBlock

PRESETS = {
    'small2D': ElasticBlockConfig.small2D,
    'standard2D': ElasticBlockConfig.standard2D,
    'small3D': ElasticBlockConfig.small3D,
}


#--------------------------------------------------------------------#
# -- CLI Argument Parser -- #
#--------------------------------------------------------------------#

def buildParser() -> argparse.ArgumentParser:
    '''Build the CLI argument parser.'''
    parser = argparse.ArgumentParser(
        description='mpmSim -- MPM elastic solid simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        '--config', type=str, default=None,
        help='Path to JSON configuration file',
    )
    parser.add_argument(
        '--preset', type=str, default='small2D',
        choices=sorted(PRESETS),
        help='Elastic block preset (default: small2D)',
    )
    parser.add_argument(
        '--resume', type=str, default=None, metavar='CHECKPOINT',
        help='Resume from a checkpoint written by a previous run',
    )
    parser.add_argument(
        '--implicit', action='store_true',
        help='Use implicit grid integration (preset runs only)',
    )
    parser.add_argument(
        '--no-export', action='store_true',
        help='Skip frame data export',
    )
    parser.add_argument(
        '--output-dir', type=str, default='output',
        help='Output directory for exported frames (default: output)',
    )
    parser.add_argument(
        '--log-level', type=str, default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Library log level (default: WARNING)',
    )

    return parser


#--------------------------------------------------------------------#
# -- Runner Class -- #
#--------------------------------------------------------------------#

class MpmSimRunner:
    '''
    Runs an MPM simulation and stores results.

    Handles the full pipeline: scenario setup, frame loop with
    progress reporting, and optional frame export.
    '''

    def __init__(self) -> None:
        self._exporter: FrameExporter = FrameExporter()
        self._energyMonitor: EnergyMonitorPlugin = EnergyMonitorPlugin()

    @property
    def exporter(self) -> FrameExporter:
        '''Collected frames of the last run.'''
        return self._exporter

    def runFromConfig(
        self,
        configPath: str,
        doExport: bool = True,
        exportDir: str = 'output',
        resumePath: str | None = None,
    ) -> dict:
        '''
        Run a simulation from a JSON configuration file.

        Besides the driver sections ('simulation', 'domain', 'solver',
        'material') the file may carry a 'block' section with 'min',
        'max', 'spacing' and 'velocity' for the initial particles;
        without it the central quarter of the domain is filled.

        Parameters:
        -----------
        configPath : str
            Path to the JSON configuration file
        doExport : bool
            Whether to export frame data
        exportDir : str
            Output directory for frame export
        resumePath : str | None
            Checkpoint to resume from

        Returns:
        --------
        dict : Simulation results summary
        '''
        simConfig = SimulationConfig.fromJson(configPath)

        with open(configPath, 'r') as f:
            blockSection = json.load(f).get('block', {})

        extent = simConfig.domainMax - simConfig.domainMin
        dx = float(np.min(extent / np.asarray(simConfig.cellCount)))
        try:
            particles = createUniformParticles(
                regionMin=np.asarray(blockSection.get('min', simConfig.domainMin + 0.375 * extent), dtype=float),
                regionMax=np.asarray(blockSection.get('max', simConfig.domainMin + 0.625 * extent), dtype=float),
                spacing=float(blockSection.get('spacing', 0.5 * dx)),
                density=simConfig.material.density,
                velocity=blockSection.get('velocity'),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f'Malformed block section in {configPath}: {e}') from e

        return self.runSimulation(
            simConfig, particles, scenarioName='config',
            doExport=doExport, exportDir=exportDir, resumePath=resumePath,
        )

    def runElasticBlock(
        self,
        blockConfig: ElasticBlockConfig,
        doExport: bool = True,
        exportDir: str = 'output',
        resumePath: str | None = None,
    ) -> dict:
        '''
        Run the elastic block drop scenario.

        Parameters:
        -----------
        blockConfig : ElasticBlockConfig
            Scenario configuration
        doExport : bool
            Whether to export frame data
        exportDir : str
            Output directory for frame export
        resumePath : str | None
            Checkpoint to resume from

        Returns:
        --------
        dict : Simulation results summary
        '''
        simConfig, particles = createElasticBlock(blockConfig)

        return self.runSimulation(
            simConfig, particles, scenarioName='elasticBlock',
            doExport=doExport, exportDir=exportDir, resumePath=resumePath,
        )

    def runSimulation(
        self,
        simConfig: SimulationConfig,
        particles: list[SolidParticle],
        scenarioName: str = 'elasticBlock',
        doExport: bool = True,
        exportDir: str = 'output',
        resumePath: str | None = None,
    ) -> dict:
        '''
        Configure a driver, run it to the end frame and report.

        Parameters:
        -----------
        simConfig : SimulationConfig
            Driver configuration
        particles : list[SolidParticle]
            Initial particles (ignored when resuming)
        scenarioName : str
            Name used in the banner and export filename
        doExport : bool
            Whether to export frame data
        exportDir : str
            Output directory for frame export
        resumePath : str | None
            Checkpoint to resume from

        Returns:
        --------
        dict : Simulation results summary
        '''
        print()
        print('=' * 62)
        print(f'  MPMSIM -- {scenarioName.upper()} SIMULATION')
        print('=' * 62)
        print()

        #--------------------------------------------------------------------#
        # Driver Setup
        #--------------------------------------------------------------------#
        print('-' * 62)
        print('  DRIVER SETUP')
        print('-' * 62)

        driver = MpmSolidDriver(simConfig)
        if resumePath is not None:
            driver.read(resumePath)
        else:
            driver.setParticles(particles)

        driver.addPlugin(FrameRecorderPlugin(self._exporter))
        driver.addPlugin(self._energyMonitor)

        grid = driver.grid
        material = simConfig.material
        print(f'  Dimensions:        {simConfig.dimensions:8d}D')
        print(f'  Grid Cells:        {str(grid.cellNum().tolist()):>8}')
        print(f'  Cell Size:         {grid.minEdgeLength():8.4f} m')
        print(f'  Kernel:            {driver.interpolationKernel.name:>8}')
        print(f'  Material Model:    {material.model:>8}')
        print(f"  Young's Modulus:   {material.youngsModulus:8.2e} Pa")
        print(f'  Poisson Ratio:     {material.poissonRatio:8.3f}')
        print(f'  Integration:       {simConfig.integration:>8}')
        print(f'  Particles:         {driver.particleNum():8d}')
        print(f'  Frames:            {driver.currentFrame:4d} -> {simConfig.endFrame:d}')
        if resumePath is not None:
            print(f'  Resumed From:      {resumePath}')
        print()

        #--------------------------------------------------------------------#
        # Frame Loop
        #--------------------------------------------------------------------#
        print('-' * 62)
        print('  RUNNING SIMULATION')
        print('-' * 62)
        print()
        print(f'  {"Frame":>6}  {"Time":>8}  {"Steps":>8}  {"dt":>10}  {"MaxVel":>8}  {"KE":>10}')
        print(f'  {"":>6}  {"(s)":>8}  {"":>8}  {"(s)":>10}  {"(m/s)":>8}  {"(J)":>10}')
        print('  ' + '-' * 58)

        wallClockStart = timeModule.time()

        if driver.stage is not DriverStage.FINISHED and driver.currentFrame >= simConfig.endFrame:
            driver.run()

        while driver.stage is not DriverStage.FINISHED:
            state = driver.advanceFrame()
            print(
                f'  {state.frame:6d}  {state.time:8.4f}  {state.step:8d}  {state.dt:10.2e}  '
                f'{state.maxSpeed:8.4f}  {state.kineticEnergy:10.4e}'
            )

        wallClockSeconds = timeModule.time() - wallClockStart
        finalState = driver.currentState

        print()
        print(f'  Simulation complete.')
        print(f'  Total steps:       {finalState.step:8d}')
        print(f'  Wall-clock time:   {wallClockSeconds:8.1f} s')
        print(f'  Frames recorded:   {self._exporter.frameCount:8d}')
        print()

        #--------------------------------------------------------------------#
        # Export
        #--------------------------------------------------------------------#
        exportPath = None
        if doExport:
            print('-' * 62)
            print('  EXPORTING FRAME DATA')
            print('-' * 62)

            exportPath = self._exporter.export(
                config=simConfig,
                outputDir=exportDir,
                scenarioName=scenarioName,
            )
            print(f'  Exported to: {exportPath}')
            print()

        #--------------------------------------------------------------------#
        # Summary
        #--------------------------------------------------------------------#
        elasticEnergy = driver.elasticEnergy()

        print('=' * 62)
        print('  SIMULATION SUMMARY')
        print('=' * 62)
        print(f'  Final KE:          {finalState.kineticEnergy:10.6f} J')
        print(f'  Final Elastic E:   {elasticEnergy:10.6f} J')
        print(f'  Total Mass:        {finalState.totalMass:10.6f} kg')
        print(f'  Mass Drift:        {self._energyMonitor.massDrift():10.2e}')
        print(f'  Max Velocity:      {finalState.maxSpeed:8.4f} m/s')
        print('=' * 62)
        print()

        return {
            'finalState': finalState,
            'elasticEnergy': elasticEnergy,
            'wallClockSeconds': wallClockSeconds,
            'nFrames': self._exporter.frameCount,
            'exportPath': exportPath,
        }


#--------------------------------------------------------------------#
# -- CLI Entry Point -- #
#--------------------------------------------------------------------#

def main(argv: list[str] | None = None) -> int:
    '''CLI entry point; returns the process exit code.'''
    parser = buildParser()
    args = parser.parse_args(argv)

    setupLogging(level=getattr(logging, args.log_level))
    runner = MpmSimRunner()

    try:
        if args.config:
            runner.runFromConfig(
                args.config,
                doExport=not args.no_export,
                exportDir=args.output_dir,
                resumePath=args.resume,
            )
        else:
            blockConfig = PRESETS[args.preset]()
            if args.implicit:
                blockConfig.integration = 'implicit'
            runner.runElasticBlock(
                blockConfig,
                doExport=not args.no_export,
                exportDir=args.output_dir,
                resumePath=args.resume,
            )
    except ConfigurationError as e:
        print(f'  Error: {e}')
        return 1

    return 0


if __name__ == '__main__':
    raise SystemExit(main())
