# Copyright (c) US Inc. All rights reserved.
"""
Entry point for running tuneforge as a module.

Usage:
    python -m tuneforge
"""
from tuneforge.main import run

if __name__ == '__main__':
    run()
