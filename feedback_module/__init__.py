"""Haptic feedback port and vibration backends."""
