# -- Logging Configuration -- #

'''
Sets up the package logger for mpmSim.

Library modules log through logging.getLogger(__name__); this
function attaches handlers to the 'mpmSim' namespace logger.

Sean Bowman [10/19/2026]
'''

import logging
import sys
from typing import Optional


def setupLogging(level: int = logging.INFO, logFile: Optional[str] = None) -> logging.Logger:
    '''
    Configure the 'mpmSim' namespace logger.

    Parameters:
    -----------
    level : int
        Logging level (e.g. logging.DEBUG, logging.INFO)
    logFile : str | None
        Optional path to also save log records to

    Returns:
    --------
    logging.Logger : The configured package logger
    '''
    logger = logging.getLogger('mpmSim')
    logger.setLevel(level)

    # Avoid duplicate records when called more than once
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S',
    )

    consoleHandler = logging.StreamHandler(sys.stdout)
    consoleHandler.setLevel(level)
    consoleHandler.setFormatter(formatter)
    logger.addHandler(consoleHandler)

    if logFile:
        fileHandler = logging.FileHandler(logFile, mode='w', encoding='utf-8')
        fileHandler.setLevel(level)
        fileHandler.setFormatter(formatter)
        logger.addHandler(fileHandler)

    logger.info('Logging initialized.')
    return logger
