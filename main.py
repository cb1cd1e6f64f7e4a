#!/usr/bin/env python3
"""
Wind Synth Router - Entry point.

Routes a wind controller to a multi-timbral synthesizer.
"""

from windsynth_router.cli import main

if __name__ == "__main__":
    main()
