#!/usr/bin/env python3
"""
Dojo Duel - terminal edition

Thin wrapper around the CLI in the dojo package. Battle rules live in
dojo.battle, profiles/shop/settings in dojo.system.

To run: python main.py [--account NAME] [--seed N] [--no-audio]
"""

from dojo.cli import run

if __name__ == "__main__":
    run()
