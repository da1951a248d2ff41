# -- Simulation Scenarios Package -- #

'''
Pre-configured simulation scenarios for the MPM solid driver.

Each scenario provides initial conditions (particle layout) and
configuration for a specific problem.

Sean Bowman [10/19/2026]
'''

from mpmSim.scenarios.elasticBlock import ElasticBlockConfig, createElasticBlock
