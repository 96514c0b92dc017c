from dataclasses import dataclass, field
from typing import List, Optional, Union

from .tokens import JumpLocation

PORT_COUNT = 8


@dataclass
class StringVar:
    name: str
    value: str


@dataclass
class NumberVar:
    name: str
    value: int


Var = Union[StringVar, NumberVar]


@dataclass
class MachineState:
    """Registers, stack and variables of one run.

    `vars` is a single flat table shared by every function invocation; a
    later `let` shadows an earlier binding of the same name without
    removing it.
    """
    stack: List[int] = field(default_factory=list)
    ports: List[int] = field(default_factory=lambda: [0] * PORT_COUNT)
    accumulator: int = 0
    vars: List[Var] = field(default_factory=list)
    jump_locations: List[JumpLocation] = field(default_factory=list)
    error_count: int = 0

    def lookup(self, name: str) -> Optional[Var]:
        for var in reversed(self.vars):
            if var.name == name:
                return var
        return None

    def define(self, var: Var):
        self.vars.append(var)

    def clear_vars(self):
        self.vars = []

    def port_index(self, port: str) -> Optional[int]:
        """Resolve a `P<index>` reference; None if it names no port."""
        digits = port[1:]
        if not digits.isascii() or not digits.isdigit():
            return None
        index = int(digits)
        if index >= len(self.ports):
            return None
        return index

    def __str__(self) -> str:
        return format_state(self)


def format_var(var: Var) -> str:
    kind = 'String' if isinstance(var, StringVar) else 'Number'
    return f"{kind}({var.name} = {var.value!r})"


def format_state(state: MachineState) -> str:
    """Render the state as the table shown after a run."""
    out: List[str] = []
    out.append(f"Stack:          {state.stack}")
    out.append("Port:           {")
    out.append('      ' + ', '.join(f"P{i}: {hex(v)}" for i, v in enumerate(state.ports)))
    out.append("}")
    out.append("Jump Locations: {")
    for loc in state.jump_locations:
        out.append(f"    {loc.name} (line {loc.line})")
    out.append("}")
    out.append(f"Accumulator:    {state.accumulator}")
    out.append("Vars: {")
    for var in state.vars:
        out.append(f"    {format_var(var)}")
    out.append("}")
    return '\n'.join(out) + '\n'
