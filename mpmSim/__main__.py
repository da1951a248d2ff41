# -- mpmSim Module Entry -- #

'''
Allows `python -m mpmSim` as an alias of the mpmsim console script.

Sean Bowman [10/19/2026]
'''

from mpmSim.runner import main

raise SystemExit(main())
