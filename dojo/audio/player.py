"""Battle cue player (short synthesized tones) with graceful fallback.

Uses pygame.mixer. If the mixer cannot start (no audio device, headless CI)
every call becomes a silent no-op after one WARN log line, so battles never
depend on sound.

Public singleton: ``audio``

  audio.play_cue(name)      # attack | special | defend | win | lose | ui
  audio.set_enabled(flag)
"""
from __future__ import annotations
import math
import os
import threading
from array import array
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from dojo.core.logging import logger

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

SAMPLE_RATE = 22050

# (frequency Hz, duration s, start offset s) per layered note
CUE_TONES: Dict[str, List[Tuple[float, float, float]]] = {
    "attack":  [(230.0, 0.18, 0.0)],
    "special": [(400.0, 0.6, 0.0), (600.0, 0.6, 0.0)],
    "defend":  [(140.0, 0.25, 0.0)],
    "win":     [(660.0, 0.22, 0.0), (880.0, 0.22, 0.14), (990.0, 0.22, 0.28)],
    "lose":    [(220.0, 0.9, 0.0), (165.0, 0.9, 0.02), (110.0, 0.9, 0.04)],
    "ui":      [(880.0, 0.12, 0.0)],
}

def synthesize(notes: List[Tuple[float, float, float]], volume: float = 0.5) -> array:
    """Mono signed 16-bit samples; each note decays linearly to silence."""
    total = max(off + dur for _, dur, off in notes)
    buf = [0.0] * int(total * SAMPLE_RATE)
    for freq, dur, off in notes:
        start = int(off * SAMPLE_RATE)
        n = int(dur * SAMPLE_RATE)
        for i in range(n):
            env = 1.0 - i / n
            buf[start + i] += math.sin(2 * math.pi * freq * i / SAMPLE_RATE) * env
    peak = max(1.0, max(abs(s) for s in buf))
    return array("h", (int(s / peak * volume * 32767) for s in buf))

@dataclass
class _State:
    inited: bool = False
    failed: bool = False
    channels: int = 1
    sounds: Dict[str, object] = field(default_factory=dict)

class AudioEngine:
    def __init__(self, enabled: bool = True):
        self._state = _State()
        self._lock = threading.Lock()
        self.enabled = enabled
        self.played: List[str] = []

    def set_enabled(self, flag: bool):
        self.enabled = bool(flag)

    @property
    def available(self) -> bool:
        return self._state.inited

    def _ensure_init(self):
        if self._state.inited or self._state.failed:
            return
        with self._lock:
            if self._state.inited or self._state.failed:
                return
            try:
                import pygame
                pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
                init = pygame.mixer.get_init()
                self._state.channels = init[2] if init else 1
                self._state.inited = True
                logger.debug("AudioInitSuccess", channels=self._state.channels)
            except Exception as e:  # pygame raises pygame.error or OSError depending on backend
                self._state.failed = True
                logger.warn("AudioInitFailed", error=str(e))

    def _sound(self, name: str):
        snd = self._state.sounds.get(name)
        if snd is not None:
            return snd
        import pygame
        samples = synthesize(CUE_TONES[name])
        if self._state.channels > 1:
            samples = array("h", (s for s in samples for _ in range(self._state.channels)))
        snd = pygame.mixer.Sound(buffer=samples.tobytes())
        self._state.sounds[name] = snd
        return snd

    def play_cue(self, name: str) -> bool:
        if name not in CUE_TONES:
            raise ValueError(f"unknown audio cue {name!r}")
        if not self.enabled:
            return False
        self._ensure_init()
        if not self._state.inited:
            return False
        self._sound(name).play()
        self.played.append(name)
        return True

    def shutdown(self):
        if not self._state.inited:
            return
        import pygame
        pygame.mixer.quit()
        self._state = _State()

audio = AudioEngine()

__all__ = ["AudioEngine","audio","CUE_TONES","synthesize","SAMPLE_RATE"]
