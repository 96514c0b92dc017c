from russembly.machine import MachineState, NumberVar, StringVar, format_state
from russembly.tokens import JumpLocation


def test_lookup_returns_last_binding():
    state = MachineState()
    state.define(NumberVar('x', 1))
    state.define(StringVar('y', 'why'))
    state.define(NumberVar('x', 2))
    assert state.lookup('x') == NumberVar('x', 2)
    assert state.lookup('y').value == 'why'
    assert state.lookup('z') is None
    assert len(state.vars) == 3


def test_port_index():
    state = MachineState()
    assert state.port_index('P0') == 0
    assert state.port_index('P07') == 7
    assert state.port_index('P8') is None
    assert state.port_index('P') is None
    assert state.port_index('Pa') is None


def test_format_state():
    state = MachineState(stack=[1, 2], accumulator=3, jump_locations=[JumpLocation('loop', 4)])
    state.ports[0] = 255
    state.define(StringVar('name', 'rusm'))
    text = format_state(state)
    assert 'Stack:          [1, 2]' in text
    assert 'P0: 0xff, P1: 0x0' in text
    assert 'loop (line 4)' in text
    assert 'Accumulator:    3' in text
    assert "String(name = 'rusm')" in text
    assert str(state) == text
