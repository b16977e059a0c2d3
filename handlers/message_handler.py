# handlers/message_handler.py
# 消息节处理器：按类型和聊天状态对 <message> 节分类，并分发给对应的订阅者
#
# 用法：
#
#     def setup(handler):
#         handler.on_chat(lambda stanza: print('someone is chatting!'))
#         handler.on(MessageCategory.GROUPCHAT, on_groupchat)
#
#     pipeline.use(message(setup))
#
# 参考：
# - RFC 6121 Message Syntax: http://xmpp.org/rfcs/rfc6121.html#message-syntax-type
# - XEP-0085 Chat State Notifications: http://xmpp.org/extensions/xep-0085.html

from typing import Any, Callable, Union

from core.event_bus import EventBus
from core.exceptions import ConfigurationError
from core.message_category import MessageCategory, category_key
from core.message_pipeline import PipelineStage
from core.stanza import Stanza
from logger_config import get_logger

logger = get_logger("MessageHandler")

Subscriber = Callable[[Stanza], Any]


class MessageSubscriptions:
    """传给 setup 函数的订阅句柄，所有方法都可以链式调用"""

    def __init__(self, bus: EventBus):
        self._bus = bus

    def on(self, category: Union[MessageCategory, str], callback: Subscriber) -> 'MessageSubscriptions':
        """订阅某个分类

        Args:
            category: MessageCategory 成员或任意 type 字符串
            callback: 回调函数 callback(stanza)

        Raises:
            ConfigurationError: 回调不可调用，或分类写成了 "error"
            SubscriptionError: setup 已经结束
        """
        key = category_key(category)
        if key == "error":
            raise ConfigurationError("Error stanzas are dispatched as 'err', subscribe to MessageCategory.ERR instead")
        if not callable(callback):
            raise ConfigurationError(f"Subscriber for '{key}' must be callable")
        self._bus.subscribe(key, callback)
        return self

    def on_chat(self, callback: Subscriber) -> 'MessageSubscriptions':
        return self.on(MessageCategory.CHAT, callback)

    def on_groupchat(self, callback: Subscriber) -> 'MessageSubscriptions':
        return self.on(MessageCategory.GROUPCHAT, callback)

    def on_normal(self, callback: Subscriber) -> 'MessageSubscriptions':
        return self.on(MessageCategory.NORMAL, callback)

    def on_headline(self, callback: Subscriber) -> 'MessageSubscriptions':
        return self.on(MessageCategory.HEADLINE, callback)

    def on_err(self, callback: Subscriber) -> 'MessageSubscriptions':
        return self.on(MessageCategory.ERR, callback)

    def on_composing(self, callback: Subscriber) -> 'MessageSubscriptions':
        return self.on(MessageCategory.COMPOSING, callback)

    def on_paused(self, callback: Subscriber) -> 'MessageSubscriptions':
        return self.on(MessageCategory.PAUSED, callback)


def classify_message(stanza: Stanza) -> Union[MessageCategory, str]:
    """确定消息节的分类，先匹配的规则优先

    1. 含 <composing/> 子元素 -> composing
    2. 含 <paused/> 子元素 -> paused
    3. 没有 type 属性 -> normal
    4. type="error" -> err
    5. 其他 -> type 属性的原值
    """
    if stanza.get_child("composing") is not None:
        return MessageCategory.COMPOSING
    if stanza.get_child("paused") is not None:
        return MessageCategory.PAUSED

    message_type = stanza.attr("type")
    if not message_type:
        return MessageCategory.NORMAL
    if message_type == "error":
        # 错误节以 err 分发，和普通通知一样处理，不作为致命信号
        return MessageCategory.ERR
    return MessageCategory.from_type(message_type)


class MessageHandler:
    """消息节分类器，构造时调用一次 setup 完成订阅"""

    def __init__(self, setup: Callable[[MessageSubscriptions], Any]):
        if setup is None:
            raise ConfigurationError("message handler requires a setup function")
        if not callable(setup):
            raise ConfigurationError(f"message handler setup must be callable, got {type(setup).__name__}")

        self._bus = EventBus()
        setup(MessageSubscriptions(self._bus))
        self._bus.freeze()
        logger.debug(f"Message handler ready: {self._bus.get_subscribers()}")

    def add_error_handler(self, callback: Callable[[str, Stanza, Exception], Any]):
        """订阅者抛出异常时的回调 callback(category, stanza, exc)"""
        self._bus.add_error_handler(callback)

    def listener_count(self, category: Union[MessageCategory, str]) -> int:
        return self._bus.listener_count(category_key(category))

    def classify(self, stanza: Stanza) -> Union[MessageCategory, str]:
        return classify_message(stanza)

    def accept(self, stanza: Stanza):
        """分类并分发消息节，不向调用方抛出订阅者异常"""
        category = category_key(self.classify(stanza))
        logger.debug(f"Classified {stanza} as '{category}'")
        result = self._bus.emit(category, stanza)
        if result["errors"]:
            logger.debug(f"{len(result['errors'])} subscriber(s) failed for '{category}'")


class MessageStage(PipelineStage):
    """把 MessageHandler 接入管道的阶段，只处理 <message> 节"""

    def __init__(self, handler: MessageHandler):
        super().__init__("message")
        self.handler = handler
        self.handler.add_error_handler(self._forward_error)

    def _forward_error(self, category: str, stanza: Stanza, exc: Exception):
        """订阅者异常转发到当前所属管道的错误通道"""
        if self.pipeline is not None:
            self.pipeline.report_error(f"{self.name}:{category}", stanza, exc)

    def handle(self, stanza: Stanza, proceed: Callable[[], None]):
        if not stanza.is_("message"):
            return proceed()
        try:
            self.handler.accept(stanza)
        finally:
            proceed()


def message(setup: Callable[[MessageSubscriptions], Any]) -> MessageStage:
    """创建消息处理阶段

    Args:
        setup: 订阅函数，构造时以 MessageSubscriptions 为参数同步调用一次

    Returns:
        可以加入 MessagePipeline 的阶段

    Raises:
        ConfigurationError: 未提供 setup 函数
    """
    return MessageStage(MessageHandler(setup))
