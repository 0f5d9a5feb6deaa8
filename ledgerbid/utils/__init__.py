"""Shared helpers (logging, input parsing)"""
