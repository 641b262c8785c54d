#!/usr/bin/env python3
# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""
Main entry point for the Region Inventory server.

Usage:
    python run_server.py

This is equivalent to running:
    python -m region_inventory
"""

from region_inventory.__main__ import main

if __name__ == "__main__":
    main()
