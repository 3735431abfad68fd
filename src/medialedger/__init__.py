"""MediaLedger - keeps the music catalog honest about which files still exist."""

__version__ = "0.4.0"
