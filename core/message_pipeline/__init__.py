# core/message_pipeline/__init__.py
# 节处理管道，阶段以 (stanza, proceed) 的中间件形式串联

from .pipeline_stage import PipelineStage, FunctionStage
from .message_pipeline import MessagePipeline

__all__ = [
    'PipelineStage',
    'FunctionStage',
    'MessagePipeline',
]
