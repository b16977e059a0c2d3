# core/event_bus.py
# 同步事件总线，管理事件订阅和分发

import asyncio
import inspect
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

from core.exceptions import SubscriptionError
from logger_config import get_logger

logger = get_logger("EventBus")


def _handler_name(handler: Callable) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class EventBus:
    """事件总线，管理事件订阅和分发

    订阅阶段结束后调用 freeze()，订阅表变为只读，分发时遍历不可变快照。
    """

    def __init__(self):
        # {event_type: [handler, ...]}，按订阅顺序保存
        self._subscribers: Dict[str, List[Callable]] = {}
        self._table: Optional[Mapping[str, Tuple[Callable, ...]]] = None
        self._error_handlers: List[Callable] = []
        # 异步订阅者创建的任务，保持强引用直到完成
        self._pending: Set[asyncio.Future] = set()

    @property
    def is_frozen(self) -> bool:
        return self._table is not None

    def subscribe(self, event_type: str, handler: Callable):
        """订阅事件

        Args:
            event_type: 事件类型
            handler: 事件处理函数，调用时只传入事件数据

        Raises:
            SubscriptionError: 订阅表已冻结
        """
        if self.is_frozen:
            raise SubscriptionError(f"Cannot subscribe to '{event_type}': subscriptions are closed")
        self._subscribers.setdefault(event_type, []).append(handler)
        logger.debug(f"{_handler_name(handler)} 订阅事件 {event_type}")

    def freeze(self) -> Mapping[str, Tuple[Callable, ...]]:
        """冻结订阅表，返回只读的分发表"""
        if self._table is None:
            self._table = MappingProxyType({
                event_type: tuple(handlers)
                for event_type, handlers in self._subscribers.items()
            })
            self._subscribers = {}
        return self._table

    def add_error_handler(self, callback: Callable[[str, Any, Exception], Any]):
        """添加订阅者异常回调 callback(event_type, data, exc)"""
        self._error_handlers.append(callback)

    def _handlers_for(self, event_type: str) -> Tuple[Callable, ...]:
        if self._table is not None:
            return self._table.get(event_type, ())
        return tuple(self._subscribers.get(event_type, ()))

    def listener_count(self, event_type: str) -> int:
        return len(self._handlers_for(event_type))

    def emit(self, event_type: str, data: Any) -> Dict[str, Any]:
        """分发事件

        按订阅顺序依次调用订阅者；单个订阅者出错不影响其余订阅者。

        Args:
            event_type: 事件类型
            data: 事件数据

        Returns:
            处理结果字典
                - processed: 是否有订阅者
                - delivered: 成功调用的订阅者数量
                - errors: [(订阅者名称, 异常), ...]
        """
        subscribers = self._handlers_for(event_type)
        if not subscribers:
            logger.debug(f"事件 {event_type} 没有订阅者，已丢弃")
            return {"processed": False, "delivered": 0, "errors": []}

        logger.debug(f"分发事件 {event_type}，共有 {len(subscribers)} 个订阅者")

        delivered = 0
        errors = []
        for handler in subscribers:
            try:
                result = handler(data)
                if inspect.isawaitable(result):
                    self._schedule(event_type, data, handler, result)
                delivered += 1
            except Exception as e:
                name = _handler_name(handler)
                logger.error(f"订阅者 {name} 处理事件 {event_type} 时发生错误: {e}", exc_info=True)
                errors.append((name, e))
                self._report_error(event_type, data, e)

        return {"processed": True, "delivered": delivered, "errors": errors}

    def _schedule(self, event_type: str, data: Any, handler: Callable, awaitable):
        """把异步订阅者的协程交给当前事件循环，不等待其完成

        Raises:
            RuntimeError: 当前线程没有运行中的事件循环
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RuntimeError(f"异步订阅者 {_handler_name(handler)} 需要运行中的事件循环") from None

        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)

        def on_done(fut: asyncio.Future):
            self._pending.discard(fut)
            if fut.cancelled():
                return
            exc = fut.exception()
            if exc is not None:
                logger.error(
                    f"异步订阅者 {_handler_name(handler)} 处理事件 {event_type} 时发生错误: {exc}",
                    exc_info=(type(exc), exc, exc.__traceback__)
                )
                self._report_error(event_type, data, exc)

        task.add_done_callback(on_done)

    def _report_error(self, event_type: str, data: Any, exc: Exception):
        for callback in self._error_handlers:
            try:
                callback(event_type, data, exc)
            except Exception as e:
                logger.error(f"错误回调 {_handler_name(callback)} 执行失败: {e}", exc_info=True)

    def get_subscribers(self, event_type: Optional[str] = None) -> Dict[str, List[str]]:
        """获取订阅者信息

        Args:
            event_type: 事件类型，如果为None则返回所有事件

        Returns:
            {event_type: [订阅者名称, ...]}
        """
        if event_type:
            return {event_type: [_handler_name(h) for h in self._handlers_for(event_type)]}
        table = self._table if self._table is not None else self._subscribers
        return {
            et: [_handler_name(h) for h in handlers]
            for et, handlers in table.items()
        }
