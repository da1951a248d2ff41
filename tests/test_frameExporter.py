# -- Frame Export Test -- #

'''
Tests for FrameExporter, loadFrames and the plotly figures built
from exported frames.

Sean Bowman [10/19/2026]
'''

import json

import plotly.graph_objects as go
import pytest

from mpmSim.errors import ConfigurationError, PreconditionError
from mpmSim.export import FrameExporter, loadFrames
from mpmSim.mpm.plugins import FrameRecorderPlugin
from mpmSim.visualization import animateFrames, plotEnergyHistory, plotParticleFrame


@pytest.fixture
def exportedRun(configuredDriver, tmp_path):
    '''Run two frames with a recorder and export them.'''
    exporter = FrameExporter()
    configuredDriver.addPlugin(FrameRecorderPlugin(exporter))
    configuredDriver.run()
    path = exporter.export(configuredDriver.config, outputDir=str(tmp_path), scenarioName='unitBlock')
    return exporter, path


def testRecorderCapturesInitialAndFrames(exportedRun):
    exporter, _ = exportedRun
    assert exporter.frameCount == 3
    assert [f['frame'] for f in exporter.frames] == [0, 1, 2]
    assert len(exporter.frames[0]['positions']) == 16
    assert exporter.frames[0]['speeds'] == [0.0] * 16


def testExportLoadRoundTrip(exportedRun):
    exporter, path = exportedRun
    assert 'mpmSim_unitBlock_' in path

    data = loadFrames(path)
    assert data['meta']['type'] == 'mpmSim'
    assert data['meta']['nFrames'] == 3
    assert data['meta']['nParticles'] == 16
    assert data['config']['simulation']['endFrame'] == 2
    assert len(data['energy']['times']) == 3
    assert data['energy']['total'][0] == pytest.approx(0.0)


def testLoadFramesErrors(tmp_path):
    with pytest.raises(ConfigurationError):
        loadFrames(str(tmp_path / 'missing.json'))

    broken = tmp_path / 'broken.json'
    broken.write_text('not json')
    with pytest.raises(ConfigurationError):
        loadFrames(str(broken))

    foreign = tmp_path / 'foreign.json'
    foreign.write_text(json.dumps({'meta': {'type': 'surfboard'}}))
    with pytest.raises(ConfigurationError):
        loadFrames(str(foreign))


def testFigures(exportedRun):
    _, path = exportedRun
    data = loadFrames(path)

    frameFig = plotParticleFrame(data['frames'][-1], colorBy='volumeRatios', domain=([0, 0], [1, 1]))
    assert isinstance(frameFig, go.Figure)
    assert isinstance(frameFig.data[0], go.Scatter)
    assert len(frameFig.data[0].x) == 16

    energyFig = plotEnergyHistory(data)
    assert [trace.name for trace in energyFig.data] == ['Kinetic', 'Elastic', 'Total']

    animation = animateFrames(data)
    assert len(animation.frames) == 3

    with pytest.raises(PreconditionError):
        plotParticleFrame(data['frames'][0], colorBy='temperature')


def testAnimateRequiresFrames():
    with pytest.raises(PreconditionError):
        animateFrames({'frames': []})


def test3DFrameUsesScatter3d():
    frame = {'frame': 0, 'time': 0.0, 'positions': [[0.1, 0.2, 0.3]], 'speeds': [0.0], 'volumeRatios': [1.0]}
    fig = plotParticleFrame(frame)
    assert isinstance(fig.data[0], go.Scatter3d)
