# -- Export Package -- #

'''
Data export utilities for MPM simulation results.

Exports frame data as JSON for the plotly figures and external
viewers.

Sean Bowman [10/19/2026]
'''

from mpmSim.export.frameExporter import FrameExporter, loadFrames
