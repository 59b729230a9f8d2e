"""Shared risk state.

This package is the single place where the producers' signals are
merged and where the analyzer takes its consistent snapshots.
"""
