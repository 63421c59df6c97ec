#!/usr/bin/env python
"""Parse saved paldb.cc pages into JSON records.

Usage: paldb_parse.py [options] <pal|item|list> <file> [file ...]
"""

from paldb.cli import parse_main


if __name__ == "__main__":
    parse_main()
