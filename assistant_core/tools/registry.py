"""工具注册表。

进程启动时通过 build_default_registry 显式构建一次，随后冻结为只读，
并以引用方式传给回复引擎。冻结后并发读取无需加锁。

- all(): 全部工具（按注册顺序），用于向模型声明可调用函数。
- find(name): 按名称精确查找（区分大小写，不做前缀匹配）。
"""

from typing import Dict, Iterable, List, Optional, Tuple

from assistant_core.config.settings import Settings, settings
from assistant_core.domain.exceptions import DuplicateToolError, ValidationError
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.tools.base import ToolCapability
from assistant_core.tools.definitions import ToolDef
from assistant_core.tools.exchange_rate import ExchangeRateTool
from assistant_core.tools.holidays import HolidaysTool
from assistant_core.tools.today_date import TodayDateTool
from assistant_core.tools.weather import CurrentWeatherTool, WeatherForecastTool


class ToolRegistry:
    def __init__(self, capabilities: Iterable[ToolCapability] = ()):
        self._tools: Dict[str, ToolCapability] = {}
        self._frozen = False
        for cap in capabilities:
            self.register(cap)

    def register(self, capability: ToolCapability) -> None:
        """注册一个工具；同名重复注册视为启动配置错误。"""
        if self._frozen:
            raise ValidationError(code="REGISTRY_FROZEN", message="tool registry is frozen")
        name = capability.name
        if not name:
            raise ValidationError(code="INVALID_TOOL", message=f"tool {type(capability).__name__} has no name")
        if name in self._tools:
            raise DuplicateToolError(code="DUPLICATE_TOOL", message=f"tool {name!r} already registered")
        self._tools[name] = capability

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def all(self) -> Tuple[ToolCapability, ...]:
        return tuple(self._tools.values())

    def find(self, name: str) -> Optional[ToolCapability]:
        return self._tools.get(name)

    def catalog(self) -> List[ToolDef]:
        """模型可见的函数声明列表（名称、描述、参数 schema）。"""
        return [cap.definition() for cap in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


def default_tools(cfg: Settings = settings) -> List[ToolCapability]:
    """启动时注册的工具列表；新增工具只需在此追加构造。"""
    return [
        CurrentWeatherTool(cfg),
        WeatherForecastTool(cfg),
        ExchangeRateTool(cfg),
        HolidaysTool(cfg),
        TodayDateTool(),
    ]


def build_default_registry(cfg: Settings = settings) -> ToolRegistry:
    registry = ToolRegistry(default_tools(cfg)).freeze()
    if not len(registry):
        logger.warning("No tools registered")
    else:
        logger.info("Tools registered", extra={"extra": {"count": len(registry)}})
        for cap in registry.all():
            logger.info("Tool registered", extra={"extra": {"name": cap.name, "desc": cap.description}})
    return registry
