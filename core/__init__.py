# core/__init__.py
# 核心模块：节模型、事件总线、管道与配置
