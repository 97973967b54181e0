"""
Answer aggregation over a conversation graph's step events.

Only agent steps contribute to the user-visible answer; action steps (tool
output) never do. The text of every AI turn the agent emits during the
current execution is concatenated in emission order.
"""

from typing import Iterable

from docchat.agents.conversation_graph import StepEvent
from docchat.core.graph_state import AGENT, TurnKind, turn_kind


def _text_of(content) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class AnswerAggregator:
    """Running answer buffer fed one StepEvent at a time."""

    def __init__(self):
        self._parts: list[str] = []
        self.steps: list[str] = []

    def feed(self, event: StepEvent) -> None:
        self.steps.append(event.node)
        if event.node != AGENT or event.resumed:
            return
        for turn in event.turns:
            kind = turn_kind(turn)
            if kind is TurnKind.AI:
                text = _text_of(turn.content)
                if text:
                    self._parts.append(text)
            elif kind in (TurnKind.HUMAN, TurnKind.TOOL_RESULT):
                continue

    @property
    def answer(self) -> str:
        return "".join(self._parts)


def collect_answer(events: Iterable[StepEvent]) -> str:
    """Drain `events` and return the accumulated answer ("" if the agent said nothing)."""
    aggregator = AnswerAggregator()
    for event in events:
        aggregator.feed(event)
    return aggregator.answer
