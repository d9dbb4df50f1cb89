#!/usr/bin/env python3
"""
Run the telemetry CLI from a source checkout.
"""
import sys

from telemetry.cli import main

if __name__ == "__main__":
    sys.exit(main())
