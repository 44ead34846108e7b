#!/usr/bin/env python3
"""
newswatch: polls the news page and forwards new items to a Telegram chat.

Usage: main.py <bookmarkfile> <token> <chat_id> [--once] [--interval SECONDS]
"""

import sys

from newswatch.bot import main

if __name__ == "__main__":
    sys.exit(main())
