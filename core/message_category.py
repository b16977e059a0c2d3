# core/message_category.py
# 消息节分类，对应 RFC 6121 的 type 属性和 XEP-0085 的聊天状态

from enum import Enum
from typing import Union


class MessageCategory(str, Enum):
    """消息分类"""
    CHAT = "chat"  # 一对一会话中的消息
    GROUPCHAT = "groupchat"  # 多人聊天室中的消息
    NORMAL = "normal"  # 会话之外的独立消息，期望对方回复
    HEADLINE = "headline"  # 通知、提醒等无需回复的消息
    ERR = "err"  # 之前发送的消息处理出错（协议值为 "error"）
    COMPOSING = "composing"  # 对方正在输入
    PAUSED = "paused"  # 对方停止输入

    @classmethod
    def from_type(cls, value: str) -> Union['MessageCategory', str]:
        """把 type 属性值转换为分类，未知值原样返回"""
        try:
            return cls(value)
        except ValueError:
            return value


def category_key(category: Union[MessageCategory, str]) -> str:
    """分类在订阅表中使用的键"""
    if isinstance(category, MessageCategory):
        return category.value
    return str(category)
