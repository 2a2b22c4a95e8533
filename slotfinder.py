#!/usr/bin/env python3
"""
Convenience shim to run Slotfinder from a source checkout.
Usage: python slotfinder.py ROWS.json --source hdb --target ptp [--config PATH]
"""

from slotfinder.cli import main


if __name__ == "__main__":
    main()
