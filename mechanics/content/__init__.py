# mechanics/content/__init__.py
