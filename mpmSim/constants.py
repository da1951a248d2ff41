# -- Numerical Constants for the MPM Core -- #

'''
Numerical tolerances and default parameters shared across the
sparse-matrix engine, the uniform grid and the MPM driver.
All physical values in SI units unless otherwise noted.

References:
-----------
Sulsky, Chen & Schreyer (1994) -- A particle method for history-dependent materials
Jiang et al. (2016) -- The Material Point Method for Simulating Continuum Materials

Sean Bowman [10/19/2026]
'''

#--------------------------------------------------------------------#
# -- Linear Algebra Tolerances -- #
#--------------------------------------------------------------------#

# Scalars with |s| below this are treated as zero divisors
divisionEpsilon: float = 1.0e-12

# Default absolute tolerance for SparseMatrix.isClose / SparseVector.isClose
defaultCompareTolerance: float = 1.0e-9

# Relative tolerance for the conjugate gradient grid solve
cgTolerance: float = 1.0e-10

# Iteration cap for the conjugate gradient grid solve
cgMaxIterations: int = 500

#--------------------------------------------------------------------#
# -- Grid Transfer Parameters -- #
#--------------------------------------------------------------------#

# Grid nodes with less mass than this are treated as inactive
gridMassEpsilon: float = 1.0e-12

# Distance kept between clamped particles and the upper edge of the
# valid interpolation region, in grid units
positionClampEpsilon: float = 1.0e-6

#--------------------------------------------------------------------#
# -- Driver Defaults -- #
#--------------------------------------------------------------------#

# CFL number used for adaptive time step selection
# dt = cflNumber * dxMin / (maxSpeed + waveSpeed)
cflNumber: float = 0.3

# FLIP/PIC blending ratio: 0 = pure PIC, 1 = pure FLIP
flipRatio: float = 0.95

# Gravitational acceleration [m/s^2]
gravity: float = 9.81

# Number of node layers at each wall that receive the boundary condition
defaultBoundaryThickness: int = 2

#--------------------------------------------------------------------#
# -- Checkpoint Format -- #
#--------------------------------------------------------------------#

checkpointFormatTag: str = 'mpmSim.checkpoint'
checkpointFormatVersion: int = 1
