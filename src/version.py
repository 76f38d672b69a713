
__author__ = "Jan Tomek <jan.tomek@protonmail.com>"
__date__ = "16.10.2026"
__version__ = "v1.0.0"
__description__ = """Animated piston kinematics coupled to a forward motion cue.

The pistons of an inline engine move on a sinusoidal law of the crank angle,
each cylinder shifted by its phase. A trail of past piston positions flows
backwards with the vehicle speed and the road grid scrolls underneath, so the
stroke of every piston is drawn as a streak in space."""
