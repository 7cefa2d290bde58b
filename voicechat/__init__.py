"""VoiceChat - voice-enabled chat widget core and completion proxy."""

__version__ = "0.1.0"
