# converge/__init__.py
# -*- coding: utf-8 -*-
"""
Playbook runner and update entry point.
"""
