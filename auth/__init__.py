# auth/__init__.py
