# settings/__init__.py
# -*- coding: utf-8 -*-
"""
Application settings: pydantic models and the layered loader.
"""
