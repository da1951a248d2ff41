# -- Particle Visualizations -- #

'''
Plotly figures built from exported MPM frames.

All functions consume the dictionaries written by FrameExporter
(or returned by loadFrames) and never touch a live driver.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import numpy as np
import plotly.graph_objects as go

from mpmSim.errors import PreconditionError
from mpmSim.visualization import theme

_COLOR_FIELDS = {
    'speeds': 'Speed (m/s)',
    'volumeRatios': 'J = det(F)',
}


def _particleTrace(frame: dict, colorBy: str, markerSize: float) -> go.Scatter | go.Scatter3d:
    if colorBy not in _COLOR_FIELDS:
        raise PreconditionError(f'Unknown color field {colorBy!r}; use one of {list(_COLOR_FIELDS)}')

    positions = np.asarray(frame['positions'], dtype=float).reshape(len(frame['positions']), -1)
    values = np.asarray(frame[colorBy], dtype=float)
    marker = dict(
        size=markerSize,
        color=values,
        colorscale=theme.PARTICLE_COLORSCALE,
        colorbar=dict(title=_COLOR_FIELDS[colorBy]),
    )

    if positions.shape[1] == 3:
        return go.Scatter3d(
            x=positions[:, 0], y=positions[:, 1], z=positions[:, 2],
            mode='markers', marker=marker, name='Particles',
        )
    return go.Scatter(
        x=positions[:, 0] if positions.size else [],
        y=positions[:, 1] if positions.size else [],
        mode='markers', marker=marker, name='Particles',
    )


def plotParticleFrame(
    frame: dict,
    colorBy: str = 'speeds',
    domain: tuple[list[float], list[float]] | None = None,
    markerSize: float = 4.0,
) -> go.Figure:
    '''
    Scatter plot of one exported frame.

    Parameters:
    -----------
    frame : dict
        One entry of the exported 'frames' list
    colorBy : str
        Per-particle field for the color scale: 'speeds' or 'volumeRatios'
    domain : tuple | None
        (domainMin, domainMax) to fix the axis ranges (2D only)
    markerSize : float
        Marker size in px

    Returns:
    --------
    go.Figure : Plotly figure
    '''
    fig = go.Figure(_particleTrace(frame, colorBy, markerSize))

    layout = dict(
        title=f"Frame {frame.get('frame', '?')}  (t = {frame['time']:.3f} s)",
        template=theme.TEMPLATE,
        height=500,
    )
    if domain is not None and len(domain[0]) == 2:
        layout['xaxis'] = dict(range=[domain[0][0], domain[1][0]], title='x (m)')
        layout['yaxis'] = dict(
            range=[domain[0][1], domain[1][1]], title='y (m)', scaleanchor='x', scaleratio=1,
        )
    fig.update_layout(**layout)

    return fig


def plotEnergyHistory(exported: dict) -> go.Figure:
    '''
    Kinetic, elastic and total energy over time.

    Parameters:
    -----------
    exported : dict
        Full export (as returned by loadFrames)

    Returns:
    --------
    go.Figure : Plotly figure
    '''
    energy = exported['energy']
    times = energy['times']

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=times, y=energy['kinetic'], mode='lines',
        name='Kinetic', line=dict(color=theme.BLUE, width=2),
    ))
    fig.add_trace(go.Scatter(
        x=times, y=energy['elastic'], mode='lines',
        name='Elastic', line=dict(color=theme.ORANGE, width=2),
    ))
    fig.add_trace(go.Scatter(
        x=times, y=energy['total'], mode='lines',
        name='Total', line=dict(color=theme.WHITE, width=1, dash='dash'),
    ))

    fig.update_layout(
        title='Energy History',
        xaxis_title='Time (s)',
        yaxis_title='Energy (J)',
        template=theme.TEMPLATE,
        height=350,
    )

    return fig


def animateFrames(exported: dict, colorBy: str = 'speeds', markerSize: float = 4.0) -> go.Figure:
    '''
    Animated 2D scatter over all exported frames with a play button.

    Parameters:
    -----------
    exported : dict
        Full export (as returned by loadFrames)
    colorBy : str
        Per-particle field for the color scale
    markerSize : float
        Marker size in px

    Returns:
    --------
    go.Figure : Plotly figure with one animation frame per export frame
    '''
    frames = exported['frames']
    if not frames:
        raise PreconditionError('Export contains no frames')

    config = exported.get('config', {}).get('domain', {})
    fig = plotParticleFrame(
        frames[0], colorBy=colorBy, markerSize=markerSize,
        domain=(config['min'], config['max']) if 'min' in config else None,
    )
    fig.frames = [
        go.Frame(data=[_particleTrace(f, colorBy, markerSize)], name=str(i))
        for i, f in enumerate(frames)
    ]
    fig.update_layout(
        updatemenus=[dict(
            type='buttons',
            buttons=[dict(label='Play', method='animate', args=[None])],
        )],
    )

    return fig
