# golem/__init__.py
"""golem — движок правил для игры «тапни / перетащи» на взвешенном автомате."""

__version__ = "0.1.0"
