"""工具数据结构定义。

这些 dataclass 描述了“工具调用”的 schema，既用于：
- 将可用工具列表暴露给 LLM（ToolDef）。
- 在回复循环中保存模型触发的工具调用（ToolCall）。
"""

from dataclasses import dataclass, field
from typing import Dict, Any


@dataclass
class ToolDef:
    """一个可供 LLM 调用的工具定义；parameters 为 JSON Schema（object）。"""

    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})


@dataclass
class ToolCall:
    """模型发起的一次工具调用请求。

    arguments 保留模型返回的原始 JSON 文本，由回复循环负责解析，
    解析失败时作为工具结果反馈给模型。
    """

    id: str
    name: str
    arguments: str
