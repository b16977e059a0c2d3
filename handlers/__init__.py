# handlers/__init__.py
# 节处理器
