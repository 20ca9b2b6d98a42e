"""
models/ - Domain Layer
=======================
Plain dataclasses and enums shared by every other layer.
"""
