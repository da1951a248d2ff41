# -- Runner and Scenario Test -- #

'''
Tests for the elastic block scenario and the command-line runner.

Sean Bowman [10/19/2026]
'''

import json
import logging
import os

import numpy as np
import pytest

from mpmSim.runner import MpmSimRunner, buildParser, main
from mpmSim.scenarios import ElasticBlockConfig, createElasticBlock


@pytest.fixture(autouse=True)
def restoreLogging():
    '''main() configures the package logger; undo it after each test.'''
    logger = logging.getLogger('mpmSim')
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


def testElasticBlockScenario():
    '''Block sits centered horizontally with its lower face at dropHeight.'''
    blockConfig = ElasticBlockConfig.small2D()
    simConfig, particles = createElasticBlock(blockConfig)

    assert simConfig.dimensions == 2
    assert simConfig.boundaryMode == 'slip'
    assert np.allclose(simConfig.gravity, [0.0, -9.81])

    positions = np.array([p.position for p in particles])
    spacing = blockConfig.particleSpacing
    assert positions[:, 1].min() == pytest.approx(blockConfig.dropHeight + 0.5 * spacing)
    assert positions[:, 0].mean() == pytest.approx(0.5 * blockConfig.domainSize)
    totalMass = sum(p.mass for p in particles)
    assert totalMass == pytest.approx(blockConfig.material.density * blockConfig.blockSize ** 2)


def testElasticBlock3D():
    simConfig, particles = createElasticBlock(ElasticBlockConfig.small3D())
    assert simConfig.dimensions == 3
    assert np.allclose(simConfig.gravity, [0.0, 0.0, -9.81])
    assert particles[0].dimensions == 3


def testRunnerElasticBlock(tmp_path, capsys):
    blockConfig = ElasticBlockConfig.small2D()
    blockConfig.endFrame = 2

    runner = MpmSimRunner()
    results = runner.runElasticBlock(blockConfig, exportDir=str(tmp_path))

    assert results['finalState'].frame == 2
    assert results['nFrames'] == 3
    assert os.path.isfile(results['exportPath'])
    assert 'SIMULATION SUMMARY' in capsys.readouterr().out


def testRunnerFromConfigAndResume(tmp_path):
    outputDir = tmp_path / 'checkpoints'
    configPath = tmp_path / 'config.json'
    configPath.write_text(json.dumps({
        'simulation': {'endFrame': 2, 'frameRate': 100, 'writeToFile': True, 'outputDir': str(outputDir)},
        'domain': {'dimensions': 2, 'min': [0, 0], 'max': [1, 1], 'cellCount': 8},
        'material': {'youngsModulus': 1000.0, 'density': 100.0},
        'block': {'min': [0.375, 0.375], 'max': [0.625, 0.625], 'spacing': 0.0625},
    }))

    first = MpmSimRunner().runFromConfig(str(configPath), doExport=False)
    assert first['exportPath'] is None
    assert first['finalState'].totalMass == pytest.approx(100.0 * 0.25 ** 2)

    checkpoint = os.path.join(str(outputDir), 'checkpoint_00001.npz')
    resumed = MpmSimRunner().runFromConfig(str(configPath), doExport=False, resumePath=checkpoint)
    assert resumed['finalState'].frame == 2
    assert resumed['finalState'].step == first['finalState'].step


def testMainReturnsErrorCode(tmp_path, capsys):
    assert main(['--config', str(tmp_path / 'missing.json'), '--no-export']) == 1
    assert 'Error' in capsys.readouterr().out


def testMainRunsPreset(tmp_path):
    assert main(['--preset', 'small2D', '--implicit', '--output-dir', str(tmp_path)]) == 0
    assert any(name.startswith('mpmSim_elasticBlock_') for name in os.listdir(tmp_path))


def testParserDefaults():
    args = buildParser().parse_args([])
    assert args.preset == 'small2D'
    assert args.config is None
    assert not args.no_export
