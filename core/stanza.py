# core/stanza.py
# XML 节（stanza）模型，封装 ElementTree 元素并提供分类所需的查询接口

import xml.etree.ElementTree as ET
from typing import List, Optional

from core.exceptions import StanzaParseError

# XEP-0085 聊天状态命名空间
NS_CHATSTATES = "http://jabber.org/protocol/chatstates"
NS_CLIENT = "jabber:client"


def _split_tag(tag: str):
    """把 '{ns}local' 形式的标签拆分为 (ns, local)"""
    if tag.startswith("{"):
        ns, _, local = tag[1:].partition("}")
        return ns, local
    return None, tag


class Stanza:
    """协议节，只读视图"""

    def __init__(self, element: ET.Element):
        if element is None:
            raise StanzaParseError("Stanza requires an element")
        self.element = element
        self.xmlns, self.name = _split_tag(element.tag)

    @classmethod
    def from_xml(cls, text: str) -> "Stanza":
        """从单个 XML 元素字符串构造节

        Args:
            text: 序列化后的 XML 元素

        Returns:
            Stanza 实例

        Raises:
            StanzaParseError: XML 格式错误
        """
        try:
            element = ET.fromstring(text)
        except ET.ParseError as e:
            raise StanzaParseError(f"Malformed stanza: {e}") from e
        return cls(element)

    def is_(self, name: str) -> bool:
        """判断根元素名称（不含命名空间）是否为 name"""
        return self.name == name

    def attr(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.element.get(name, default)

    def get_child(self, name: str, xmlns: Optional[str] = None) -> Optional[ET.Element]:
        """按本地名称查找第一个子元素

        Args:
            name: 子元素本地名称
            xmlns: 可选命名空间，为 None 时忽略命名空间

        Returns:
            找到的子元素，否则返回 None
        """
        for child in self.element:
            if not isinstance(child.tag, str):
                continue
            child_ns, local = _split_tag(child.tag)
            if local != name:
                continue
            if xmlns is not None and child_ns != xmlns:
                continue
            return child
        return None

    @property
    def children(self) -> List[ET.Element]:
        return list(self.element)

    def text_of(self, name: str) -> Optional[str]:
        """获取子元素的文本内容，例如消息正文 <body>"""
        child = self.get_child(name)
        if child is None:
            return None
        return child.text

    def to_xml(self) -> str:
        return ET.tostring(self.element, encoding="unicode")

    def __str__(self) -> str:
        return f"Stanza(name={self.name}, type={self.attr('type')}, from={self.attr('from')})"

    def __repr__(self) -> str:
        return self.__str__()


def parse_stanzas(text: str) -> List[Stanza]:
    """解析包含多个顶层节的文档

    文档根元素（例如 <stream>）只作为容器，其直接子元素逐个转换为 Stanza。

    Args:
        text: XML 文档

    Returns:
        节列表

    Raises:
        StanzaParseError: XML 格式错误
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise StanzaParseError(f"Malformed stanza document: {e}") from e
    return [Stanza(child) for child in root if isinstance(child.tag, str)]
