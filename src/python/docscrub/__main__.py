#!/usr/bin/env python3
"""
Entry point for running docscrub as a module with python3 -m docscrub
"""

from .cli import main

if __name__ == "__main__":
    main()
