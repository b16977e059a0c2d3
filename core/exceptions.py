# core/exceptions.py
# 消息分发相关的自定义异常


class StanzaDispatchError(Exception):
    """消息分发基础异常"""
    pass


class ConfigurationError(StanzaDispatchError):
    """处理器配置错误异常（缺少回调函数、订阅参数非法等）"""
    pass


class SubscriptionError(StanzaDispatchError):
    """订阅表已冻结后仍尝试订阅时抛出"""
    pass


class StanzaParseError(StanzaDispatchError):
    """XML 节解析失败异常"""
    pass
