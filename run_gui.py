#!/usr/bin/env python3
"""
Launch script for the QRoute button-grid window with proper environment setup.
This script sets the Qt environment variables before PySide6 is imported.
"""

import os
import sys

# Set all Qt environment variables BEFORE any Qt imports
os.environ['QT_AUTO_SCREEN_SCALE_FACTOR'] = '0'
os.environ['QT_SCALE_FACTOR'] = '1'
os.environ['QT_SCREEN_SCALE_FACTORS'] = '1'
os.environ['QT_LOGGING_RULES'] = '*=false;qt.qpa.backingstore=false'

from qroute.__main__ import main

if __name__ == "__main__":
    sys.exit(main(["gui", *sys.argv[1:]]))
