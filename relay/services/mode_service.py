from enum import Enum
from typing import Optional


class Mode(str, Enum):
    DEFAULT = "default"
    LIGHT = "light"  # 輕鬆閒聊
    FLIRTY = "flirty"  # 曖昧撒嬌


MODE_LABELS = {
    Mode.DEFAULT: "預設",
    Mode.LIGHT: "輕鬆",
    Mode.FLIRTY: "曖昧",
}

MODE_CONFIRMATIONS = {
    Mode.DEFAULT: "好，我回到平常的樣子陪你聊。",
    Mode.LIGHT: "好，換成輕鬆模式，我們隨便聊聊～",
    Mode.FLIRTY: "好啊，換成曖昧模式，你想我了嗎？",
}

_COMMAND_VERBS = ("切換", "切換成", "切換到", "換成")


def _build_command_table() -> dict[str, Mode]:
    table: dict[str, Mode] = {}
    for mode, label in MODE_LABELS.items():
        for verb in _COMMAND_VERBS:
            table[f"{verb}{label}模式"] = mode
        table[f"/mode {mode.value}"] = mode
    return table


COMMANDS = _build_command_table()


def parse_mode_command(text: str) -> Optional[Mode]:
    """Return the mode an exact command asks for, or None for ordinary text.

    Accepted forms: "切換成輕鬆模式" (any verb in _COMMAND_VERBS, with or
    without spaces) and "/mode light".
    """
    if not text:
        return None
    stripped = text.strip()
    if stripped.startswith("/"):
        key = " ".join(stripped.casefold().split())
    else:
        key = "".join(stripped.split())
    return COMMANDS.get(key)


def confirmation_for(mode: Mode) -> str:
    return MODE_CONFIRMATIONS[mode]
