"""HTTP layer for the Whisper Tree concept API."""
