"""Tests for the spectral tap and audio source."""

import numpy as np
import pygame
import pytest

from hearingscope.exceptions import ResourceUnavailable
from hearingscope.io import audio_source
from hearingscope.io.audio_source import AudioSource, MixerPlayback, SpectralTap
from hearingscope.pipeline import SpectralFrame


class TestSpectralTap:
    def test_bin_count(self, pure_sine):
        y, sr = pure_sine
        assert SpectralTap(y, sr, fft_size=512).bin_count == 256
        assert SpectralTap(y, sr, fft_size=1024).bin_count == 512

    def test_invalid_fft_size(self, pure_sine):
        y, sr = pure_sine
        with pytest.raises(ValueError):
            SpectralTap(y, sr, fft_size=500)

    def test_invalid_decibel_range(self, pure_sine):
        y, sr = pure_sine
        with pytest.raises(ValueError):
            SpectralTap(y, sr, min_decibels=-30, max_decibels=-100)

    def test_read_returns_byte_frame(self, pure_sine):
        y, sr = pure_sine
        frame = SpectralTap(y, sr, fft_size=512).read(0.5)

        assert isinstance(frame, SpectralFrame)
        assert frame.magnitudes.dtype == np.uint8
        assert frame.sample_rate == sr
        assert frame.n_bins == 256

    def test_peak_at_sine_frequency(self, pure_sine):
        """A 1 kHz tone peaks in the bin nearest 1 kHz."""
        y, sr = pure_sine
        tap = SpectralTap(y, sr, fft_size=1024, smoothing=0.0)

        db = tap.float_frequency_data(0.5)
        peak_freq = np.argmax(db) * sr / 1024
        assert abs(peak_freq - 1000.0) <= sr / 1024

    def test_silence_is_zero(self, sample_rate):
        tap = SpectralTap(np.zeros(sample_rate), sample_rate, fft_size=512)
        assert np.all(tap.byte_frequency_data(0.5) == 0)

    def test_start_of_signal_is_zero(self, pure_sine):
        y, sr = pure_sine
        assert np.all(SpectralTap(y, sr).byte_frequency_data(0.0) == 0)

    def test_smoothing_rises_gradually(self, pure_sine):
        y, sr = pure_sine
        tap = SpectralTap(y, sr, fft_size=1024, smoothing=0.8)
        peak = int(round(1000.0 / (sr / 1024)))

        first = tap.float_frequency_data(0.5)[peak]
        second = tap.float_frequency_data(0.5)[peak]
        assert second > first

        tap.reset()
        assert tap.float_frequency_data(0.5)[peak] == pytest.approx(first)

    def test_noise_fills_spectrum(self, white_noise):
        y, sr = white_noise
        tap = SpectralTap(y, sr, fft_size=512, smoothing=0.0)
        data = tap.byte_frequency_data(0.5)

        assert np.count_nonzero(data) > 200


class TestAudioSource:
    def test_spectral_frame_follows_playback(self, pure_sine, fake_playback):
        y, sr = pure_sine
        source = AudioSource(y, sr, fake_playback)

        assert np.all(source.spectral_frame().magnitudes == 0)

        fake_playback.position = 0.5
        assert np.any(source.spectral_frame().magnitudes > 0)

    def test_transport(self, pure_sine, fake_playback):
        y, sr = pure_sine
        source = AudioSource(y, sr, fake_playback)

        source.play()
        source.toggle()
        source.toggle()
        assert fake_playback.calls == ["play", "pause", "resume"]

    def test_play_clears_smoothing(self, pure_sine, fake_playback):
        """Starting over forgets the spectra of the previous run."""
        y, sr = pure_sine
        fake_playback.position = 0.5
        source = AudioSource(y, sr, fake_playback)

        first = source.spectral_frame().magnitudes
        second = source.spectral_frame().magnitudes
        assert second.sum() > first.sum()

        source.play()
        assert np.array_equal(source.spectral_frame().magnitudes, first)

    def test_resume_finished_track_starts_over(self, pure_sine, fake_playback):
        y, sr = pure_sine
        fake_playback.position = 0.5
        source = AudioSource(y, sr, fake_playback)
        first = source.spectral_frame().magnitudes
        source.spectral_frame()

        fake_playback.finished = True
        source.resume()

        assert fake_playback.calls == ["resume"]
        assert np.array_equal(source.spectral_frame().magnitudes, first)

    def test_duration(self, pure_sine, fake_playback):
        y, sr = pure_sine
        assert AudioSource(y, sr, fake_playback).duration == pytest.approx(1.0)

    def test_release_runs_callbacks_and_closes(self, pure_sine, fake_playback):
        y, sr = pure_sine
        source = AudioSource(y, sr, fake_playback)
        released = []
        source.on_release(lambda: released.append(1))

        source.release()
        source.release()

        assert released == [1]
        assert fake_playback.calls.count("close") == 1
        assert source.released

    def test_callback_after_release_runs_immediately(self, pure_sine, fake_playback):
        y, sr = pure_sine
        source = AudioSource(y, sr, fake_playback)
        source.release()

        released = []
        source.on_release(lambda: released.append(1))
        assert released == [1]

    def test_frame_after_release_raises(self, pure_sine, fake_playback):
        y, sr = pure_sine
        source = AudioSource(y, sr, fake_playback)
        source.release()

        with pytest.raises(ResourceUnavailable):
            source.spectral_frame()

    def test_context_manager_releases_on_error(self, pure_sine, fake_playback):
        y, sr = pure_sine
        with pytest.raises(RuntimeError):
            with AudioSource(y, sr, fake_playback) as source:
                raise RuntimeError("boom")

        assert source.released
        assert fake_playback.closed

    def test_playback_closed_even_if_callback_fails(self, pure_sine, fake_playback):
        y, sr = pure_sine
        source = AudioSource(y, sr, fake_playback)

        def broken():
            raise RuntimeError("callback failed")

        source.on_release(broken)
        with pytest.raises(RuntimeError):
            source.release()
        assert fake_playback.closed

    def test_set_fft_size(self, pure_sine, fake_playback):
        y, sr = pure_sine
        source = AudioSource(y, sr, fake_playback, fft_size=512)
        source.set_fft_size(1024)

        assert source.bin_count == 512
        assert source.spectral_frame().n_bins == 512

    def test_open_decodes_file(self, temp_audio_file, monkeypatch, fake_playback):
        monkeypatch.setattr(audio_source, "MixerPlayback", lambda path: fake_playback)

        source = AudioSource.open(temp_audio_file, fft_size=1024)

        assert source.sample_rate == 44100
        assert source.bin_count == 512
        assert source.playback is fake_playback

    def test_open_missing_file(self, tmp_path):
        with pytest.raises(ResourceUnavailable):
            AudioSource.open(tmp_path / "missing.wav")


class TestMixerPlayback:
    def test_mixer_failure_is_resource_unavailable(self, tmp_path, monkeypatch):
        def fail(*args, **kwargs):
            raise pygame.error("No available audio device")

        monkeypatch.setattr(pygame.mixer, "get_init", lambda: None)
        monkeypatch.setattr(pygame.mixer, "init", fail)

        with pytest.raises(ResourceUnavailable):
            MixerPlayback(tmp_path / "song.wav")

    def test_position_tracks_mixer(self, tmp_path, monkeypatch):
        monkeypatch.setattr(pygame.mixer, "get_init", lambda: (44100, -16, 2))
        monkeypatch.setattr(pygame.mixer.music, "load", lambda path: None)
        monkeypatch.setattr(pygame.mixer.music, "play", lambda: None)
        monkeypatch.setattr(pygame.mixer.music, "get_pos", lambda: 1500)

        playback = MixerPlayback(tmp_path / "song.wav")
        assert playback.position == 0.0

        playback.play()
        assert playback.playing
        assert playback.position == pytest.approx(1.5)

        # Finished track holds the last position
        monkeypatch.setattr(pygame.mixer.music, "get_pos", lambda: -1)
        assert playback.position == pytest.approx(1.5)
        assert not playback.playing
        assert playback.finished

    def test_resume_after_end_replays(self, tmp_path, monkeypatch):
        calls = []
        monkeypatch.setattr(pygame.mixer, "get_init", lambda: (44100, -16, 2))
        monkeypatch.setattr(pygame.mixer.music, "load", lambda path: None)
        monkeypatch.setattr(pygame.mixer.music, "play", lambda: calls.append("play"))
        monkeypatch.setattr(pygame.mixer.music, "unpause", lambda: calls.append("unpause"))
        monkeypatch.setattr(pygame.mixer.music, "get_pos", lambda: -1)

        playback = MixerPlayback(tmp_path / "song.wav")
        playback.play()
        assert playback.position == 0.0
        assert not playback.playing

        playback.resume()
        assert calls == ["play", "play"]
        assert playback.playing

    def test_resume_while_paused_unpauses(self, tmp_path, monkeypatch):
        calls = []
        monkeypatch.setattr(pygame.mixer, "get_init", lambda: (44100, -16, 2))
        monkeypatch.setattr(pygame.mixer.music, "load", lambda path: None)
        monkeypatch.setattr(pygame.mixer.music, "play", lambda: calls.append("play"))
        monkeypatch.setattr(pygame.mixer.music, "pause", lambda: calls.append("pause"))
        monkeypatch.setattr(pygame.mixer.music, "unpause", lambda: calls.append("unpause"))
        monkeypatch.setattr(pygame.mixer.music, "get_pos", lambda: 800)

        playback = MixerPlayback(tmp_path / "song.wav")
        playback.play()
        playback.pause()
        playback.resume()

        assert calls == ["play", "pause", "unpause"]
        assert playback.playing
