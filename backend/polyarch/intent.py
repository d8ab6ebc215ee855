from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class IntentRule:
    action: str
    keywords: Tuple[str, ...]

    def matches(self, text: str) -> bool:
        return any(k in text for k in self.keywords)


# Evaluated top to bottom; the first match wins.
INTENT_RULES: Tuple[IntentRule, ...] = (
    IntentRule("rotate", ("回転", "回して", "rotate", "spin", "turn around")),
    IntentRule("undo", ("元に戻", "戻して", "取り消", "undo", "revert")),
    IntentRule(
        "clear",
        ("クリア", "全部消", "全て消", "すべて消", "全削除", "clear", "delete all", "remove all"),
    ),
    IntentRule(
        "fly",
        ("移動", "飛んで", "行って", "ズーム", "fly", "go to", "move to", "travel", "zoom"),
    ),
    IntentRule(
        "modify",
        (
            "色",
            "透明",
            "高さ",
            "大きさ",
            "サイズ",
            "color",
            "colour",
            "opacity",
            "height",
            "size",
        ),
    ),
)

FALLBACK_ACTION = "generate"


def infer_action(message: str) -> str:
    """Guess the action from the user's own words."""
    text = (message or "").lower()
    for rule in INTENT_RULES:
        if rule.matches(text):
            return rule.action
    return FALLBACK_ACTION
