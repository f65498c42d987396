"""Thin wrappers around the DCMTK command-line programs.

Command construction and execution live side by side in one module per tool
so unit tests can check argument vectors without running anything.
"""
