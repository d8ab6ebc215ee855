from typing import Any, List

import pytest


class ScriptedGateway:
    def __init__(self, configured: bool = True) -> None:
        self.replies: List[Any] = []
        self.prompts: List[str] = []
        self.configured = configured

    def invoke(self, prompt, options):
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else "{}"
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def scripted_gateway() -> ScriptedGateway:
    return ScriptedGateway()
