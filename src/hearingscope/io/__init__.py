"""Audio input adapters."""

from hearingscope.io.audio_source import AudioSource, MixerPlayback, SpectralTap

__all__ = ["AudioSource", "MixerPlayback", "SpectralTap"]
