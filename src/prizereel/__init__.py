"""prizereel - reward-reveal reel engine.

Drives looping item reels to a stop on an allocated prize and sequences the
spin, decelerate, select, reveal and settle lifecycle.
"""

__version__ = "0.1.0"
