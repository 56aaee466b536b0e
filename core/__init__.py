"""Shared configuration, path and logging helpers for VidGrid."""
