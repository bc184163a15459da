"""L1 entity: fixed capture format shared by the audio worker and the transcription provider."""

SAMPLE_RATE = 48000
CHANNELS = 1
SAMPLE_WIDTH = 2  # bytes, signed 16-bit little-endian PCM
ENCODING = 'linear16'
