"""Greanly: sustainability assistant chat backend."""
