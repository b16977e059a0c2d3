# tests/conftest.py
# 测试共享的节构造工具

import pytest

from core.stanza import Stanza, NS_CHATSTATES


def build_message(type_=None, children=(), body=None, sender="juliet@example.com/balcony"):
    """构造 <message> 节，children 为聊天状态元素名列表"""
    attrs = f' from="{sender}" to="romeo@example.net"'
    if type_ is not None:
        attrs += f' type="{type_}"'
    inner = "".join(f'<{name} xmlns="{NS_CHATSTATES}"/>' for name in children)
    if body is not None:
        inner += f"<body>{body}</body>"
    return Stanza.from_xml(f'<message xmlns="jabber:client"{attrs}>{inner}</message>')


@pytest.fixture
def make_message():
    return build_message


@pytest.fixture
def presence():
    return Stanza.from_xml('<presence xmlns="jabber:client" from="juliet@example.com/balcony"/>')
