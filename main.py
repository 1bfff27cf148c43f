#!/usr/bin/env python3
"""Run prmerge from a source checkout without installing it."""

from prmerge.cli import main

if __name__ == "__main__":
    main()
