# core/message_pipeline/message_pipeline.py
# 消息管道核心类，按顺序执行各个阶段

from typing import Any, Callable, List, Union

from core.stanza import Stanza
from logger_config import get_logger
from .pipeline_stage import PipelineStage, FunctionStage

logger = get_logger("MessagePipeline")


class MessagePipeline:
    """节处理管道，管理多个处理阶段"""

    def __init__(self):
        self._stages: List[PipelineStage] = []
        self._error_handlers: List[Callable[[str, Stanza, Exception], Any]] = []

    @property
    def stages(self) -> List[PipelineStage]:
        return list(self._stages)

    def use(self, stage: Union[PipelineStage, Callable]) -> 'MessagePipeline':
        """追加处理阶段，支持 PipelineStage 或 fn(stanza, proceed)"""
        if not isinstance(stage, PipelineStage):
            if not callable(stage):
                raise TypeError(f"Pipeline stage must be callable, got {type(stage).__name__}")
            stage = FunctionStage(stage)
        stage.attach(self)
        self._stages.append(stage)
        logger.debug(f"Added stage: {stage.name}")
        return self

    def on_error(self, callback: Callable[[str, Stanza, Exception], Any]) -> 'MessagePipeline':
        """注册错误回调 callback(source, stanza, exc)"""
        self._error_handlers.append(callback)
        return self

    def report_error(self, source: str, stanza: Stanza, exc: Exception):
        """管道的统一错误通道"""
        logger.debug(f"Error reported by {source} while processing {stanza}: {exc}")
        for callback in self._error_handlers:
            try:
                callback(source, stanza, exc)
            except Exception as e:
                logger.error(f"Error callback failed: {e}", exc_info=True)

    def process(self, stanza: Stanza) -> bool:
        """处理节，按顺序执行各个阶段

        Args:
            stanza: 待处理的节

        Returns:
            bool: 节是否到达管道末尾
        """
        logger.debug(f"Processing stanza with pipeline: {stanza}")
        completed = []
        self._run(0, stanza, completed)
        logger.debug(f"Stanza processing completed: {stanza}")
        return bool(completed)

    def _run(self, index: int, stanza: Stanza, completed: list):
        if index >= len(self._stages):
            completed.append(True)
            return

        stage = self._stages[index]
        called = False

        def proceed():
            nonlocal called
            if called:
                logger.warning(f"Stage {stage.name} called proceed() more than once, ignoring")
                return
            called = True
            self._run(index + 1, stanza, completed)

        logger.debug(f"Executing stage: {stage.name}")
        try:
            stage(stanza, proceed)
        except Exception as e:
            logger.error(f"Error executing stage {stage.name}: {e}", exc_info=True)
            self.report_error(stage.name, stanza, e)
            # 继续执行后续阶段，不要因为一个阶段失败而中断整个流程
            if not called:
                proceed()
