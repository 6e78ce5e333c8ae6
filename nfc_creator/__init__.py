"""NDEF record encoder and NFC tag session handling."""

__version__ = "0.1.0"
