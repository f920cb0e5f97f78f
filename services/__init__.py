"""
Services package for the face gesture counter.

This package contains the runtime layer around the gesture core:
- Session manager: per-session detector state, locking, start/reset/stop
- Capture worker: camera/video frames -> MediaPipe landmarks -> session
"""
