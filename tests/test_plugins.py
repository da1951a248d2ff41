# -- Driver Plugin Test -- #

'''
Tests for plugin registration, hook ordering and the mutation guard.

Sean Bowman [10/19/2026]
'''

import logging

import pytest

from mpmSim.errors import DriverStateError, PreconditionError
from mpmSim.mpm.particles import SolidParticle
from mpmSim.mpm.plugins import (
    DriverPluginBase,
    EnergyMonitorPlugin,
    PluginRegistry,
    ProgressLogPlugin,
)


class RecordingPlugin(DriverPluginBase):
    '''Appends (name, hook, args) to a shared event list.'''

    def __init__(self, name, events):
        super().__init__()
        self.name = name
        self.events = events

    def onFrameStart(self, frame):
        self.events.append((self.name, 'onFrameStart', frame))

    def onFrameEnd(self, frame):
        self.events.append((self.name, 'onFrameEnd', frame))

    def onStepStart(self, time, dt):
        self.events.append((self.name, 'onStepStart', time))

    def onStepEnd(self, time, dt):
        self.events.append((self.name, 'onStepEnd', time))

    def onWrite(self, path):
        self.events.append((self.name, 'onWrite', path))

    def onRead(self, path):
        self.events.append((self.name, 'onRead', path))


class MutatingPlugin(DriverPluginBase):
    '''Tries to add a particle from inside onStepEnd.'''

    def onStepEnd(self, time, dt):
        self.driver.addParticle(SolidParticle(position=[0.5, 0.5]))


def testHookOrder(configuredDriver):
    '''Hooks fire in registration order, frames bracket their steps.'''
    events = []
    first = RecordingPlugin('first', events)
    second = RecordingPlugin('second', events)
    configuredDriver.addPlugin(first)
    configuredDriver.addPlugin(second)
    assert first.driver is configuredDriver

    configuredDriver.advanceFrame()

    hooks = [hook for name, hook, _ in events if name == 'first']
    assert hooks[0] == 'onFrameStart'
    assert hooks[-1] == 'onFrameEnd'
    assert hooks.count('onStepStart') == hooks.count('onStepEnd') == configuredDriver.stepCount
    assert events[0] == ('first', 'onFrameStart', 1)
    assert events[1] == ('second', 'onFrameStart', 1)
    assert events[-1] == ('second', 'onFrameEnd', 1)

    # Step hooks see the time before and after the step
    starts = [t for name, hook, t in events if name == 'first' and hook == 'onStepStart']
    ends = [t for name, hook, t in events if name == 'first' and hook == 'onStepEnd']
    assert starts[0] == pytest.approx(0.0)
    assert ends[-1] == pytest.approx(configuredDriver.time)


def testWriteAndReadHooks(configuredDriver, tmp_path):
    events = []
    configuredDriver.addPlugin(RecordingPlugin('rec', events))
    path = configuredDriver.write(str(tmp_path / 'state.npz'))
    configuredDriver.read(path)
    assert events == [('rec', 'onWrite', path), ('rec', 'onRead', path)]


def testMutationDuringNotificationRaises(configuredDriver):
    configuredDriver.addPlugin(MutatingPlugin())
    with pytest.raises(DriverStateError):
        configuredDriver.advanceStep(1e-3)
    assert configuredDriver.particleNum() == 16


def testRegistrationErrors(configuredDriver):
    plugin = DriverPluginBase()
    configuredDriver.addPlugin(plugin)
    with pytest.raises(PreconditionError):
        configuredDriver.addPlugin(plugin)

    configuredDriver.removePlugin(plugin)
    assert plugin.driver is None
    assert configuredDriver.plugins == []
    with pytest.raises(PreconditionError):
        configuredDriver.removePlugin(plugin)


def testRegistryRejectsUnknownHook():
    registry = PluginRegistry(owner=None)
    with pytest.raises(PreconditionError):
        registry.notify('onExplode')


def testRegisterDuringNotificationRaises():
    registry = PluginRegistry(owner=None)

    class Registering(DriverPluginBase):
        def onWrite(self, path):
            registry.register(DriverPluginBase())

    registry.register(Registering())
    with pytest.raises(DriverStateError):
        registry.notify('onWrite', 'x.npz')
    assert not registry.isNotifying
    assert len(registry) == 1


def testEnergyMonitor(configuredDriver):
    monitor = EnergyMonitorPlugin()
    configuredDriver.addPlugin(monitor)
    configuredDriver.advanceFrame()

    assert len(monitor.times) == configuredDriver.stepCount
    assert monitor.kineticEnergies[-1] > 0.0
    assert monitor.massDrift() == pytest.approx(0.0)


def testProgressLogPlugin(configuredDriver, caplog):
    configuredDriver.addPlugin(ProgressLogPlugin(stepInterval=1))
    with caplog.at_level(logging.INFO, logger='mpmSim.mpm.plugins'):
        configuredDriver.advanceFrame()
    assert any('frame 1 done' in record.getMessage() for record in caplog.records)
