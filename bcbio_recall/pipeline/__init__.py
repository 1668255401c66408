"""High level code for driving squaring off of variant calls.

This structures processing steps into the following modules:

  - main.py: Command line parsing and validation of input files.
  - region.py: Genomic regions, parsing and splitting for parallel work.
  - config_utils.py: Configuration and retrieval of external programs.
"""
