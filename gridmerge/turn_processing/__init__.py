"""Activation processing helpers.

Clicks and position updates flow through the same validation pipelines so
rejections carry consistent, human-readable messages.
"""
