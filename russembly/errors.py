from typing import Optional


class RusmError(Exception):
    """Base class for Russembly errors."""


class MachineError(RusmError):
    """A fatal machine condition that stops the current run.

    Raised when an operation needs data the machine does not have, e.g. an
    arithmetic opcode on a stack holding fewer than two values.
    """
    def __init__(self, message: str, line_number: Optional[int] = None):
        where = f" at line {line_number}" if line_number is not None else ''
        super().__init__(f"{message}{where}")
        self.message = message
        self.line_number = line_number


class StackUnderflowError(MachineError):
    pass


class DivisionByZeroError(MachineError):
    pass


class CallDepthError(MachineError):
    pass
