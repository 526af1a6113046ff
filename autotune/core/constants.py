"""Global constants for the autotune engine."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Tuning reference
A4_FREQUENCY = 440.0
A4_MIDI = 69

# Audio defaults
DEFAULT_SR = 44100
DEFAULT_FRAME_SIZE = 1024  # analyser snapshot length
DEFAULT_FMIN = 80.0
DEFAULT_FMAX = 1000.0

# Detection defaults
DEFAULT_SILENCE_FLOOR = 0.008  # ~ -42 dBFS
DEFAULT_YIN_THRESHOLD = 0.15

# Correction defaults
DEFAULT_TICK_INTERVAL = 0.03
DEFAULT_CONFIDENCE_THRESHOLD = 0.4
DEFAULT_HYSTERESIS = 0.2  # semitones
DEFAULT_UNVOICED_RELEASE = 0.2
DEFAULT_STOP_RELEASE = 0.1
DEFAULT_RETUNE = 0.1
DEFAULT_GATE_DB = -50.0

# Clamp ranges
MIN_RETUNE = 0.01
MAX_RETUNE = 0.4
MAX_SHIFT_SEMITONES = 12.0
