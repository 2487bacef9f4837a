"""
WaBot - Utilities Package
=========================

JID helpers, duration parsing, the restricted calculator and the
top-level error handler.
"""
