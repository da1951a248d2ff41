# -- Visualization Theme -- #

'''
Centralized dark-mode theme for all mpmSim Plotly figures.

Change colors or template here to restyle every plot at once.

Sean Bowman [10/19/2026]
'''

# Plotly template
TEMPLATE = 'plotly_dark'

# Primary colors
BLUE = '#42A5F5'
RED = '#EF5350'
GREEN = '#66BB6A'
ORANGE = '#FFA726'

# Neutrals
WHITE = '#E0E0E0'
REFERENCE_LINE = '#888888'

# Continuous scale for per-particle scalar fields
PARTICLE_COLORSCALE = 'Viridis'
