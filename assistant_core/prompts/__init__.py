"""系统提示词加载工具。

按用途(kind)与语言(locale) 从 prompts/<locale> 目录读取 system prompt 文本，
用于构造 ChatMessage(role="system")。目前支持：

- "reply": 回复引擎使用的助手角色设定。
- "title": 标题生成使用的约束说明。
"""

from functools import lru_cache
from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent

PROMPT_FILES = {
    "reply": "reply_system.md",
    "title": "title_system.md",
}


@lru_cache(maxsize=None)
def load_system_prompt(kind: str, locale: str = "en") -> str:
    """根据用途和语言加载系统提示词文本（结果会被缓存）。"""

    try:
        fname = PROMPTS_DIR / locale / PROMPT_FILES[kind]
    except KeyError:
        raise ValueError(f"Unknown prompt kind: {kind!r}")
    return fname.read_text(encoding="utf-8").strip()
