# mechanics/engine/__init__.py
