from __future__ import annotations

import json
from typing import Any, Iterable

from .sessions import Turn


PLACE_TEMPLATE = """
次の地名について、緯度(lat)・経度(lng)を返してください。
出力は JSON のみ。説明文やコードブロックは付けないこと。

地名: {place}

出力形式:
{{"lat": number, "lng": number}}
""".strip()


POLYGON_TEMPLATE = """
あなたは3Dマップに描画する「ポリゴン仕様」を作るAIです。
出力は JSON オブジェクト1個のみ（配列・コメント・説明文は禁止）。
shape は "circle" / "rect" / "triangle" / "ngon" のいずれか。

出力形式:
{{
  "shape": "circle", "sides": 6, "size": "medium",
  "radius": 0, "meters": 0, "height": 60,
  "color": "#ff0000", "opacity": 0.4,
  "grid": {{"rows": 1, "cols": 1}},
  "zones": [{{"row": 0, "col": 0, "color": "#ff0000", "opacity": 0.4, "height": 60}}]
}}

値の決め方:
- 五角形/六角形/多角形 → shape="ngon"、sides は 5/6/8
- 小さめ → "small"、広め/大きめ → "large"、それ以外 → "medium"
- "1km" → 1000、"500m" → 500、指定なしは 0
- 高さ指定なしは 60、透明度指定なしは 0.4、半透明は 0.35
- 危険/警告 → "#ff0000"、注意 → "#ffaa00"、安全/避難 → "#00aa55"
- 区分け/グリッド/段階/2×3 などがあれば grid と zones を必ず返す（row/col は0始まり）

入力文:
{text}
""".strip()


CHAT_SYSTEM = """
あなたはAI建築コンサルタントです。建築計画・街区計画・景観・スケール感・導線に配慮して、
丁寧かつ簡潔に助言してください。

- 操作指示が明確でない雑談・質問・相談は action="chat" にする。
- 生成/移動/戻す/クリア/回転/変更は、意図が明確な時のみ提案する。
- 操作を提案する場合は needs_confirm=true とし、confirm_text に何をするかを短く書く。
- 3Dモデル（gltf・建物モデル）の配置は自動で提案せず、action="chat" で操作手順を案内する。

返答は次の JSON のみ:
{
  "reply": "ユーザー向けの回答",
  "action": "chat | generate | fly | undo | clear | rotate | modify",
  "needs_confirm": true,
  "confirm_text": "実行確認文",
  "prompt": "generate/fly 用（不要なら空文字）",
  "state": { "polygons": [] } または null
}
""".strip()


def place_prompt(place: str) -> str:
    return PLACE_TEMPLATE.format(place=place)


def polygon_prompt(text: str) -> str:
    return POLYGON_TEMPLATE.format(text=text)


def render_history(turns: Iterable[Turn]) -> str:
    return "\n".join(
        f"{'User' if t.role == 'user' else 'Assistant'}: {t.content}" for t in turns
    )


def chat_prompt(message: str, history: Iterable[Turn], state: Any, state_limit: int = 4000) -> str:
    state_text = json.dumps(state, ensure_ascii=False)[:state_limit] if state is not None else "null"
    return "\n\n".join(
        [
            CHAT_SYSTEM,
            f"【現在の状態（参考）】\n{state_text}",
            f"【会話履歴（直近）】\n{render_history(history)}",
            f"【ユーザーの最新発話】\n{message}",
        ]
    )
