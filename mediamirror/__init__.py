"""MediaMirror: mirror a local audio library into IPFS and stream it back."""

__version__ = "0.3.0"
