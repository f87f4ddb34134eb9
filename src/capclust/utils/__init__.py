"""Utility helpers for capclust."""
