"""JSON serialization/deserialization for the Russembly machine state.

This module converts a `MachineState` to and from plain Python dict/list
structures suitable for JSON encoding, for hosts that display the machine
after a run.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from .machine import MachineState, NumberVar, StringVar, Var
from .tokens import JumpLocation


def var_to_obj(var: Var) -> Dict[str, Any]:
    kind = 'String' if isinstance(var, StringVar) else 'Number'
    return {"kind": kind, "name": var.name, "value": var.value}


def var_from_obj(o: Dict[str, Any]) -> Var:
    if o["kind"] == 'String':
        return StringVar(o["name"], str(o["value"]))
    if o["kind"] == 'Number':
        return NumberVar(o["name"], int(o["value"]))
    raise ValueError(f"unknown variable kind {o['kind']!r}")


def state_to_obj(state: MachineState) -> Dict[str, Any]:
    return {
        "stack": list(state.stack),
        "ports": list(state.ports),
        "accumulator": state.accumulator,
        "vars": [var_to_obj(v) for v in state.vars],
        "jump_locations": [{"name": j.name, "line": j.line} for j in state.jump_locations],
        "error_count": state.error_count,
    }


def state_from_obj(o: Dict[str, Any]) -> MachineState:
    state = MachineState(
        stack=[int(x) for x in o.get("stack", [])],
        accumulator=int(o.get("accumulator", 0)),
        vars=[var_from_obj(v) for v in o.get("vars", [])],
        jump_locations=[JumpLocation(j["name"], int(j["line"])) for j in o.get("jump_locations", [])],
        error_count=int(o.get("error_count", 0)),
    )
    ports = o.get("ports")
    if ports is not None:
        if len(ports) != len(state.ports):
            raise ValueError(f"expected {len(state.ports)} ports, got {len(ports)}")
        state.ports = [int(p) for p in ports]
    return state


def dumps_state(state: MachineState, indent: int = 2) -> str:
    return json.dumps(state_to_obj(state), ensure_ascii=False, indent=indent)
