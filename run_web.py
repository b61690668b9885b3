#!/usr/bin/env python3
"""
Main entry point for the Sideline Rotation Engine web application.

This script launches the Flask-based API server. Pass a JSON file path to
load records from it at startup and save them back on exit.
"""
import sys

from sideline.ui.web_app import run_web_app

if __name__ == "__main__":
    store_file = sys.argv[1] if len(sys.argv) > 1 else None
    run_web_app(store_file=store_file)
