"""
OrbitWatch - orbital situational-awareness dashboard
Two-body propagation, ground-station geometry and a hand-projected 3D view.
"""
