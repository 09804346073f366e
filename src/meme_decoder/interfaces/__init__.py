"""Shared value records and the decoder capability."""
