"""Hanabot test suite."""
