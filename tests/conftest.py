import io

import pytest
from rich.console import Console

from russembly.diagnostics import THEME, Diagnostics


@pytest.fixture
def diagnostics():
    """Diagnostics writing to an in-memory console."""
    return Diagnostics(Console(file=io.StringIO(), theme=THEME, width=120))
