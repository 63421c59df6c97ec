#!/usr/bin/env python
"""Fetch paldb.cc pages and write them out as JSON records.

Usage: paldb_fetch.py [options] <pal|item|list> [slug ...]
"""

from paldb.cli import fetch_main


if __name__ == "__main__":
    fetch_main()
