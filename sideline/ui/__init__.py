"""
UI package for the Sideline Rotation Engine.

This package contains the Flask web server exposing the engine as a JSON API.
"""
from .web_app import WebAppState, create_app, run_web_app

__all__ = ["WebAppState", "create_app", "run_web_app"]
