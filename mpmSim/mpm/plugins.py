# -- Driver Plugins -- #

'''
Observers notified by the simulation driver at phase boundaries.

Plugins are owned by the host application; the driver only keeps
references to them in a PluginRegistry and calls their hooks in
registration order. A plugin gets a back-reference to the driver
on registration and may read any driver state, but the particle
collection must not be mutated while a notification is running.

Hooks:
    onFrameStart(frame)     before the first step of a frame
    onFrameEnd(frame)       after the frame boundary is reached
    onStepStart(time, dt)   before a step, time at step start
    onStepEnd(time, dt)     after a step, time at step end
    onWrite(path)           after a checkpoint was written
    onRead(path)            after a checkpoint was restored

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, TYPE_CHECKING

from mpmSim.errors import DriverStateError, PreconditionError

if TYPE_CHECKING:
    from mpmSim.export.frameExporter import FrameExporter
    from mpmSim.mpm.mpmSolid import MpmSolidDriver

logger = logging.getLogger(__name__)

HOOK_NAMES = (
    'onFrameStart',
    'onFrameEnd',
    'onStepStart',
    'onStepEnd',
    'onWrite',
    'onRead',
)


######################################################################
# -- Plugin Base -- #
######################################################################

class DriverPluginBase:
    '''
    Base class with no-op hooks; override the ones you need.

    Attributes:
    -----------
    driver : MpmSolidDriver | None
        Driver the plugin is registered with
    '''

    def __init__(self) -> None:
        self.driver: MpmSolidDriver | None = None

    def onFrameStart(self, frame: int) -> None:
        pass

    def onFrameEnd(self, frame: int) -> None:
        pass

    def onStepStart(self, time: float, dt: float) -> None:
        pass

    def onStepEnd(self, time: float, dt: float) -> None:
        pass

    def onWrite(self, path: str) -> None:
        pass

    def onRead(self, path: str) -> None:
        pass


######################################################################
# -- Registry -- #
######################################################################

class PluginRegistry:
    '''
    Ordered collection of plugins attached to one driver.

    Parameters:
    -----------
    owner : MpmSolidDriver
        Driver assigned to each registered plugin's back-reference
    '''

    def __init__(self, owner: MpmSolidDriver) -> None:
        self._owner = owner
        self._plugins: list[DriverPluginBase] = []
        self._notifying = False

    def __len__(self) -> int:
        return len(self._plugins)

    def __iter__(self) -> Iterator[DriverPluginBase]:
        return iter(list(self._plugins))

    @property
    def isNotifying(self) -> bool:
        '''True while a hook is being dispatched.'''
        return self._notifying

    def register(self, plugin: DriverPluginBase) -> None:
        '''Append a plugin; registering the same plugin twice is an error.'''
        if any(p is plugin for p in self._plugins):
            raise PreconditionError(f'Plugin {plugin!r} is already registered')
        if self._notifying:
            raise DriverStateError('Cannot register plugins during a notification')
        plugin.driver = self._owner
        self._plugins.append(plugin)
        logger.debug('Registered plugin %s', type(plugin).__name__)

    def unregister(self, plugin: DriverPluginBase) -> None:
        '''Remove a plugin and clear its driver back-reference.'''
        if self._notifying:
            raise DriverStateError('Cannot unregister plugins during a notification')
        for i, p in enumerate(self._plugins):
            if p is plugin:
                del self._plugins[i]
                plugin.driver = None
                return
        raise PreconditionError(f'Plugin {plugin!r} is not registered')

    @contextmanager
    def _dispatching(self) -> Iterator[None]:
        previous = self._notifying
        self._notifying = True
        try:
            yield
        finally:
            self._notifying = previous

    def notify(self, hook: str, *args) -> None:
        '''
        Call one hook on every plugin in registration order.

        Parameters:
        -----------
        hook : str
            Hook name, one of HOOK_NAMES
        *args
            Hook arguments
        '''
        if hook not in HOOK_NAMES:
            raise PreconditionError(f'Unknown plugin hook: {hook}')
        with self._dispatching():
            for plugin in list(self._plugins):
                getattr(plugin, hook)(*args)


######################################################################
# -- Concrete Plugins -- #
######################################################################

class ProgressLogPlugin(DriverPluginBase):
    '''
    Logs step and frame diagnostics.

    Parameters:
    -----------
    stepInterval : int
        Log every n-th step (frames are always logged)
    '''

    def __init__(self, stepInterval: int = 100) -> None:
        super().__init__()
        self._stepInterval = max(1, stepInterval)

    def onStepEnd(self, time: float, dt: float) -> None:
        state = self.driver.currentState
        if state.step % self._stepInterval == 0:
            logger.info(
                'step %d  t=%.5f s  dt=%.2e s  KE=%.4e J  vmax=%.3f m/s',
                state.step, time, dt, state.kineticEnergy, state.maxSpeed,
            )

    def onFrameEnd(self, frame: int) -> None:
        state = self.driver.currentState
        logger.info(
            'frame %d done  t=%.4f s  steps=%d  KE=%.4e J',
            frame, state.time, state.step, state.kineticEnergy,
        )

    def onWrite(self, path: str) -> None:
        logger.info('checkpoint written: %s', path)

    def onRead(self, path: str) -> None:
        logger.info('checkpoint restored: %s', path)


class FrameRecorderPlugin(DriverPluginBase):
    '''
    Feeds a FrameExporter with the particle state at every frame end.

    Parameters:
    -----------
    exporter : FrameExporter
        Frame store to append to
    recordInitial : bool
        Also record the state before the first frame is stepped
    '''

    def __init__(self, exporter: FrameExporter, recordInitial: bool = True) -> None:
        super().__init__()
        self.exporter = exporter
        self._recordInitial = recordInitial

    def onFrameStart(self, frame: int) -> None:
        if self._recordInitial and self.exporter.frameCount == 0:
            self.exporter.addFrame(self.driver.currentState, self.driver)

    def onFrameEnd(self, frame: int) -> None:
        self.exporter.addFrame(self.driver.currentState, self.driver)


class EnergyMonitorPlugin(DriverPluginBase):
    '''
    Records kinetic energy and total particle mass after every step.

    Attributes:
    -----------
    times : list[float]
        Simulated time of each sample [s]
    kineticEnergies : list[float]
        Total kinetic energy [J]
    totalMasses : list[float]
        Total particle mass [kg]
    '''

    def __init__(self) -> None:
        super().__init__()
        self.times: list[float] = []
        self.kineticEnergies: list[float] = []
        self.totalMasses: list[float] = []

    def onStepEnd(self, time: float, dt: float) -> None:
        state = self.driver.currentState
        self.times.append(time)
        self.kineticEnergies.append(state.kineticEnergy)
        self.totalMasses.append(state.totalMass)

    def massDrift(self) -> float:
        '''Largest relative deviation of total mass from the first sample.'''
        if not self.totalMasses or self.totalMasses[0] == 0.0:
            return 0.0
        reference = self.totalMasses[0]
        return max(abs(m - reference) / reference for m in self.totalMasses)
