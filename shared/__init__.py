"""Shared configuration for move-forge."""
