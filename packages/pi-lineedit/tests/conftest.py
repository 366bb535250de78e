from __future__ import annotations

from typing import Callable

import pytest
from pi.lineedit.prompt import Prompt, PromptConfig

from .virtual_terminal import VirtualTerminal


@pytest.fixture
def terminal() -> VirtualTerminal:
    return VirtualTerminal()


@pytest.fixture
def make_prompt() -> Callable[..., tuple[Prompt, VirtualTerminal]]:
    """Build a prompt wired to a virtual terminal fed with *input*."""

    def _make(input: str = "", prefix: str = "> ", **config: object) -> tuple[Prompt, VirtualTerminal]:
        term = VirtualTerminal(input)
        prompt = Prompt(prefix, PromptConfig(**config), terminal=term, output=term)  # type: ignore[arg-type]
        return prompt, term

    return _make
