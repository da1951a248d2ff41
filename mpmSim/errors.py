# -- Error Types -- #

'''
Exception hierarchy for the MPM simulation core.

Two families are distinguished:
    - PreconditionError: programming/logic errors such as invalid
      indices, shape mismatches, zero divisors, iterator misuse,
      illegal driver transitions and malformed checkpoints.
    - ConfigurationError: environment problems such as missing files,
      unreadable or malformed configuration, invalid parameter values.

Both are ordinary exceptions so a host application can decide
whether to abort or retry.

Sean Bowman [10/19/2026]
'''


class MpmSimError(Exception):
    '''Base class for all errors raised by mpmSim.'''


#--------------------------------------------------------------------#
# -- Precondition Violations -- #
#--------------------------------------------------------------------#

class PreconditionError(MpmSimError):
    '''An operation was called with arguments or state it does not accept.'''


class InvalidIndexError(PreconditionError, IndexError):
    '''Index outside the valid range of a grid, matrix, vector or array.'''


class ShapeMismatchError(PreconditionError, ValueError):
    '''Operands have incompatible shapes or dimensions.'''


class ZeroDivisorError(PreconditionError, ZeroDivisionError):
    '''Division by a scalar whose magnitude is (near) zero.'''


class IteratorStateError(PreconditionError):
    '''Iterator dereferenced at end, moved out of range, or compared across containers.'''


class DriverStateError(PreconditionError):
    '''Driver operation invoked in a lifecycle stage that does not allow it.'''


class CheckpointFormatError(PreconditionError):
    '''Checkpoint payload has the wrong format tag, version or fields.'''


#--------------------------------------------------------------------#
# -- Configuration / Environment Errors -- #
#--------------------------------------------------------------------#

class ConfigurationError(MpmSimError):
    '''Missing or unreadable file, malformed configuration or invalid parameter.'''
