import json

import pytest

from russembly.interpreter import run_program
from russembly.machine import MachineState, StringVar
from russembly.state_json import dumps_state, state_from_obj, state_to_obj


def test_state_after_run(diagnostics):
    source = 'fn main ( ) {\nhere:\n    push 3\n    mov P1 , 9\n    mov A , 2\n}\n'
    result = run_program(source, diagnostics=diagnostics)
    obj = json.loads(dumps_state(result.state))
    assert obj == {
        "stack": [3],
        "ports": [0, 9, 0, 0, 0, 0, 0, 0],
        "accumulator": 2,
        "vars": [],
        "jump_locations": [{"name": "here", "line": 2}],
        "error_count": 0,
    }


def test_vars_are_tagged_by_kind():
    state = MachineState()
    state.define(StringVar('s', 'text'))
    obj = state_to_obj(state)
    assert obj["vars"] == [{"kind": "String", "name": "s", "value": "text"}]
    assert state_from_obj(obj) == state


def test_wrong_port_count_is_rejected():
    with pytest.raises(ValueError):
        state_from_obj({"ports": [0, 0]})
