# -- Visualization Package -- #

'''
Read-only Plotly figures of exported MPM frames.

Sean Bowman [10/19/2026]
'''

from mpmSim.visualization.particlePlots import plotParticleFrame, plotEnergyHistory, animateFrames
