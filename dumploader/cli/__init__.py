# =============================================================================
# dumploader/cli/__init__.py -- CLI Module Overview
# =============================================================================
#
# Command-line tools for dumploader.  Each submodule is a self-contained
# utility that can be run directly via `python -m dumploader.cli.<module>`.
#
#   LOAD DUMP (load_dump.py)
#      Streams artists/releases/masters/labels XML dumps (local or remote,
#      plain or gzipped) into SQLite through the decode → flatten → batched
#      load pipeline.
#
# Architecture Notes:
#   - argparse for argument parsing, matching the rest of the project.
#   - The CLI constructs its own store and service; there is no central
#     container, because loads run as one-shot jobs.
# =============================================================================

"""CLI tools for dumploader.

- ``python -m dumploader.cli.load_dump`` -- load catalog dumps into SQLite.
"""
