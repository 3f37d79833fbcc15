#!/usr/bin/env python3
"""
Convenience entry point for running doctorslots directly.

Usage: python -m doctorslots [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
