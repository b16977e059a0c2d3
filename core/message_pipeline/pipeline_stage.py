# core/message_pipeline/pipeline_stage.py
# 管道阶段基类，每个阶段接收 (stanza, proceed) 并在处理后调用 proceed()

from abc import ABC, abstractmethod
from typing import Callable, Optional, TYPE_CHECKING

from core.stanza import Stanza

if TYPE_CHECKING:
    from .message_pipeline import MessagePipeline


class PipelineStage(ABC):
    """管道阶段基类"""

    def __init__(self, name: str):
        self.name = name  # 阶段名称
        self.pipeline: Optional['MessagePipeline'] = None  # 所属管道

    @abstractmethod
    def handle(self, stanza: Stanza, proceed: Callable[[], None]):
        """执行阶段处理

        Args:
            stanza: 当前节
            proceed: 将控制权交给下一个阶段，必须恰好调用一次
        """
        pass

    def attach(self, pipeline: 'MessagePipeline'):
        """阶段被加入管道时调用"""
        self.pipeline = pipeline

    def __call__(self, stanza: Stanza, proceed: Callable[[], None]):
        return self.handle(stanza, proceed)

    def __str__(self) -> str:
        return f"PipelineStage(name={self.name})"


class FunctionStage(PipelineStage):
    """把普通的 fn(stanza, proceed) 函数包装为管道阶段"""

    def __init__(self, fn: Callable[[Stanza, Callable[[], None]], None], name: Optional[str] = None):
        super().__init__(name or getattr(fn, "__name__", "anonymous"))
        self.fn = fn

    def handle(self, stanza: Stanza, proceed: Callable[[], None]):
        return self.fn(stanza, proceed)
