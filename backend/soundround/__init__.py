"""SoundRound Application Package — round lifecycle and audio submission routing.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
